from celery import shared_task
from datetime import date
import logging

from core_backend.exceptions import UpstreamStorageError
from tenant.managers import tenant_context
from tenant.models import Tenant

from .models import PeriodType
from .services import FoodCostAggregationService

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def recalculate_food_cost(self, tenant_id: str, day: str):
    """
    Rebuild a restaurant's daily food cost aggregates after new sales.

    Queued by the sales webhook once a bill is committed.
    """
    tenant = Tenant.objects.filter(pk=tenant_id, is_active=True).first()
    if tenant is None:
        logger.warning(f"Skipping food cost recalculation: tenant {tenant_id} not found or inactive")
        return {"status": "skipped", "tenant_id": tenant_id, "day": day}

    period_day = date.fromisoformat(day)
    try:
        with tenant_context(tenant):
            result = FoodCostAggregationService.calculate(
                tenant,
                period_day,
                period_day,
                PeriodType.DAILY,
                force_recalculate=True,
            )
    except UpstreamStorageError as e:
        logger.error(f"Food cost recalculation failed for {tenant.slug} on {day}: {e}")
        raise self.retry(exc=e)

    return {
        "status": "completed",
        "tenant_id": tenant_id,
        "day": day,
        "products": len(result.aggregates),
    }
