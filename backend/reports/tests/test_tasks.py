"""
Tests for the food cost recalculation task.
"""
import pytest
import uuid
from decimal import Decimal
from unittest.mock import patch

from celery.exceptions import Retry

from core_backend.exceptions import UpstreamStorageError
from reports.models import FoodCostAggregate, PeriodType
from reports.services import FoodCostAggregationService
from reports.tasks import recalculate_food_cost


@pytest.mark.django_db
class TestRecalculateFoodCost:

    def test_rebuilds_daily_aggregates(self, tenant_a, make_receipt):
        make_receipt("B1", "2024-05-10 13:00", [
            {"product_external_id": "P-1", "description": "Pizza", "quantity": Decimal("2"),
             "price": Decimal("8"), "total": Decimal("16")},
        ])

        result = recalculate_food_cost(str(tenant_a.pk), "2024-05-10")

        assert result == {
            "status": "completed",
            "tenant_id": str(tenant_a.pk),
            "day": "2024-05-10",
            "products": 1,
        }
        aggregate = FoodCostAggregate.all_objects.get(tenant=tenant_a)
        assert aggregate.period_type == PeriodType.DAILY
        assert aggregate.total_revenue == Decimal("16.00")

    def test_always_forces_recalculation(self, tenant_a):
        with patch.object(FoodCostAggregationService, "calculate") as calculate:
            calculate.return_value.aggregates = []
            recalculate_food_cost(str(tenant_a.pk), "2024-05-10")

        assert calculate.call_args.kwargs["force_recalculate"] is True

    def test_unknown_tenant_is_skipped(self):
        tenant_id = str(uuid.uuid4())

        result = recalculate_food_cost(tenant_id, "2024-05-10")

        assert result["status"] == "skipped"
        assert FoodCostAggregate.all_objects.count() == 0

    def test_inactive_tenant_is_skipped(self, tenant_a):
        tenant_a.is_active = False
        tenant_a.save()

        with patch.object(FoodCostAggregationService, "calculate") as calculate:
            result = recalculate_food_cost(str(tenant_a.pk), "2024-05-10")

        assert result["status"] == "skipped"
        calculate.assert_not_called()

    def test_storage_failure_is_retried(self, tenant_a):
        error = UpstreamStorageError("food cost aggregation")

        with patch.object(FoodCostAggregationService, "calculate", side_effect=error), \
                patch.object(recalculate_food_cost, "retry", side_effect=Retry()) as retry:
            with pytest.raises(Retry):
                recalculate_food_cost(str(tenant_a.pk), "2024-05-10")

        assert retry.call_args.kwargs["exc"] is error
