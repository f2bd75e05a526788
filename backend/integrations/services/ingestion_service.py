"""
Sales ingestion service for Cassa in Cloud webhooks.

Pipeline: received → signature-verified → deduplicated → ingested.
A bill is written at most once per restaurant: the ProcessedBill marker is
inserted first, inside the same transaction as the bill's rows, and its
unique constraint rejects concurrent duplicates.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
import json
import logging

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from core_backend.exceptions import UpstreamStorageError
from integrations.exceptions import (
    AlreadyProcessedError,
    PayloadError,
    UnmappedProductWarning,
    UnmappedRestaurantError,
)
from integrations.models import DishSale, ProcessedBill, Receipt, ReceiptRow, SalesRecord
from integrations.serializers import BillSerializer
from integrations.services.signature_service import SignatureService
from inventory.models import Dish
from tenant.managers import tenant_context
from tenant.models import Tenant

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
QUANTITY = Decimal("0.001")


@dataclass
class IngestionResult:
    """Outcome of one webhook delivery."""
    bill_id: Optional[str] = None
    tenant_id: Optional[str] = None
    skipped: bool = False
    already_processed: bool = False
    sales_record_id: Optional[int] = None
    warnings: List[UnmappedProductWarning] = field(default_factory=list)

    def to_response(self) -> dict:
        if self.skipped:
            return {"success": True, "message": "Operation ignored"}
        data = {"success": True, "billId": self.bill_id}
        if self.already_processed:
            data["message"] = "Bill already processed"
        if self.warnings:
            data["warnings"] = [str(warning) for warning in self.warnings]
        return data


def _normalize_name(name: str) -> str:
    return " ".join((name or "").split()).casefold()


class DishMatcher:
    """Maps bill lines to dishes: by external product id, then by name."""

    def __init__(self, tenant):
        self.by_external_id = {}
        self.by_name = {}
        for dish in Dish.objects.for_tenant(tenant).order_by("id"):
            if dish.external_id:
                self.by_external_id.setdefault(dish.external_id, dish)
            self.by_name.setdefault(_normalize_name(dish.name), dish)

    def match(self, item) -> Optional[Dish]:
        external_id = item.get("productId") or item["id"]
        dish = self.by_external_id.get(external_id)
        if dish is None:
            dish = self.by_name.get(_normalize_name(item.get("name")))
        return dish


class SalesIngestionService:

    # Operation header values containing this marker denote bill events
    BILL_OPERATION_MARKER = "BILL"

    @staticmethod
    def is_bill_operation(operation: Optional[str]) -> bool:
        return bool(operation) and SalesIngestionService.BILL_OPERATION_MARKER in operation.upper()

    @staticmethod
    def parse_bill(raw_body: bytes) -> dict:
        """
        Decode and validate a bill. Accepts the bill itself or the
        {"bill": ..., "operation": ..., "timestamp": ...} envelope.
        """
        try:
            body = json.loads(raw_body)
        except (ValueError, UnicodeDecodeError) as e:
            raise PayloadError(message=f"Invalid JSON payload: {e}")

        if isinstance(body, dict) and isinstance(body.get("bill"), dict):
            body = body["bill"]
        if not isinstance(body, dict):
            raise PayloadError(message="Bill payload must be a JSON object")

        serializer = BillSerializer(data=body)
        if not serializer.is_valid():
            raise PayloadError(errors=serializer.errors)
        return serializer.validated_data

    @staticmethod
    def resolve_restaurant(sales_point_id: str) -> Tenant:
        tenant = Tenant.objects.filter(sales_point_id=sales_point_id, is_active=True).first()
        if tenant is None:
            raise UnmappedRestaurantError(sales_point_id)
        return tenant

    @staticmethod
    def classify_meal_period(closed_at) -> str:
        hour = timezone.localtime(closed_at).hour
        if 6 <= hour < 15:
            return DishSale.MealPeriod.LUNCH
        if 15 <= hour < 23:
            return DishSale.MealPeriod.DINNER
        return DishSale.MealPeriod.OTHER

    @staticmethod
    def day_of_week(day) -> int:
        """0 = Sunday ... 6 = Saturday."""
        return (day.weekday() + 1) % 7

    @staticmethod
    def ingest_bill(tenant: Tenant, bill: dict) -> IngestionResult:
        """
        Persist a validated bill for `tenant` unless it was ingested before.
        """
        bill_id = bill["id"]
        result = IngestionResult(bill_id=bill_id, tenant_id=str(tenant.pk))

        try:
            with transaction.atomic():
                SalesIngestionService._write_bill(tenant, bill, result)
        except AlreadyProcessedError:
            logger.info(f"Bill {bill_id} already processed for tenant {tenant.slug}, skipping")
            result.already_processed = True
            result.warnings = []
            return result
        except IntegrityError as e:
            # A concurrent delivery of the same bill committed its marker first
            if ProcessedBill.all_objects.filter(tenant=tenant, bill_id_external=bill_id).exists():
                logger.info(f"Bill {bill_id} ingested concurrently for tenant {tenant.slug}")
                result.already_processed = True
                result.warnings = []
                return result
            raise UpstreamStorageError("bill ingestion", e)
        except DatabaseError as e:
            raise UpstreamStorageError("bill ingestion", e)

        closed_day = timezone.localtime(bill["closedAt"]).date()
        transaction.on_commit(
            lambda: SalesIngestionService.schedule_recalculation(tenant.pk, closed_day)
        )
        return result

    @staticmethod
    def _write_bill(tenant, bill, result):
        bill_id = bill["id"]
        closed_at = bill["closedAt"]

        marker, created = ProcessedBill.all_objects.get_or_create(
            tenant=tenant,
            bill_id_external=bill_id,
            defaults={"last_updated_at": closed_at},
        )
        if not created:
            raise AlreadyProcessedError(bill_id)

        receipt = Receipt.all_objects.create(
            tenant=tenant,
            external_id=bill_id,
            bill_number=bill.get("billNumber") or "",
            sales_point_id=bill["salesPointId"],
            table_number=bill.get("tableNumber") or "",
            receipt_date=closed_at,
            total_amount=bill["totalAmount"].quantize(CENT, rounding=ROUND_HALF_UP),
            raw_payload=json.loads(json.dumps(bill, default=str)),
        )

        local_day = timezone.localtime(closed_at).date()
        sales_record = SalesRecord.all_objects.create(
            tenant=tenant,
            receipt=receipt,
            date=local_day,
            covers_total=1,
            revenue_total=bill["totalAmount"].quantize(CENT, rounding=ROUND_HALF_UP),
            day_of_week=SalesIngestionService.day_of_week(local_day),
            notes=f"Imported from Cassa in Cloud - bill {bill.get('billNumber') or bill_id}",
        )
        result.sales_record_id = sales_record.pk

        matcher = DishMatcher(tenant)
        meal_period = SalesIngestionService.classify_meal_period(closed_at)
        processed_row_ids = []

        for item in bill["items"]:
            if item["id"] in processed_row_ids:
                logger.warning(f"Bill {bill_id}: duplicate line id {item['id']} ignored")
                continue

            row = ReceiptRow.all_objects.create(
                tenant=tenant,
                receipt=receipt,
                row_id_external=item["id"],
                product_external_id=item.get("productId") or None,
                category_external_id=item.get("categoryId") or None,
                description=item.get("name") or "",
                quantity=item["quantity"].quantize(QUANTITY, rounding=ROUND_HALF_UP),
                price=item["unitPrice"],
                total=item["totalPrice"],
                raw_data=json.loads(json.dumps(item, default=str)),
            )
            processed_row_ids.append(item["id"])

            dish = matcher.match(item)
            if dish is None:
                warning = UnmappedProductWarning(item["id"], item.get("name"), item.get("productId"))
                logger.warning(f"Bill {bill_id}: {warning}")
                result.warnings.append(warning)
                continue

            DishSale.all_objects.create(
                tenant=tenant,
                sales_record=sales_record,
                receipt_row=row,
                dish=dish,
                dish_name=dish.name,
                quantity_sold=row.quantity,
                revenue=item["totalPrice"].quantize(CENT, rounding=ROUND_HALF_UP),
                meal_period=meal_period,
            )

        marker.processed_row_ids = processed_row_ids
        marker.save(update_fields=["processed_row_ids"])

        logger.info(
            f"Ingested bill {bill_id} for tenant {tenant.slug}: "
            f"{len(processed_row_ids)} line(s), {len(result.warnings)} unmapped"
        )

    @staticmethod
    def schedule_recalculation(tenant_id, day):
        """
        Fire-and-forget food cost recalculation for the bill's day.
        Failures are logged and never reach the webhook caller.
        """
        try:
            from reports.tasks import recalculate_food_cost

            recalculate_food_cost.delay(str(tenant_id), day.isoformat())
        except Exception as e:
            logger.error(f"Failed to queue food cost recalculation for tenant {tenant_id}: {e}")

    @staticmethod
    def process_webhook(raw_body: bytes, signature: Optional[str], operation: Optional[str],
                        secret: Optional[str] = None) -> IngestionResult:
        """
        Run one delivery through the whole pipeline.

        Raises:
            SignatureInvalidError, PayloadError, UnmappedRestaurantError,
            UpstreamStorageError
        """
        if secret is None:
            secret = getattr(settings, "CASSA_IN_CLOUD_WEBHOOK_SECRET", "")

        # The digest covers the raw bytes, so verify before parsing
        SignatureService.verify(raw_body, signature, secret)

        if not SalesIngestionService.is_bill_operation(operation):
            logger.info(f"Ignoring non-bill webhook operation '{operation}'")
            return IngestionResult(skipped=True)

        bill = SalesIngestionService.parse_bill(raw_body)
        tenant = SalesIngestionService.resolve_restaurant(bill["salesPointId"])
        with tenant_context(tenant):
            return SalesIngestionService.ingest_bill(tenant, bill)
