"""
Period-keyed aggregation of ingested sales into per-dish totals.

Sums are kept raw while aggregating; currency (2 decimals) and quantity
(3 decimals) rounding happens once, when the aggregate row is built.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional
import logging

from django.conf import settings
from django.db import DatabaseError, transaction

from core_backend.exceptions import UpstreamStorageError, ValidationError
from integrations.models import Receipt, ReceiptRow
from inventory.models import Dish
from reports.models import FoodCostAggregate, PeriodType, SalesHistoryEntry

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
QUANTITY = Decimal("0.001")
HISTORY_PRECISION = Decimal("0.000001")


@dataclass
class ProductTotals:
    """Running, unrounded totals of one product."""
    product_external_id: str
    description: str
    dish: Optional[Dish] = None
    quantity: Decimal = Decimal("0")
    revenue: Decimal = Decimal("0")

    @property
    def average_unit_price(self) -> Decimal:
        if not self.quantity:
            return Decimal("0.00")
        return (self.revenue / self.quantity).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class AggregationResult:
    aggregates: List[FoodCostAggregate] = field(default_factory=list)
    recalculated: bool = False

    @property
    def message(self) -> str:
        if not self.recalculated:
            return "Food cost already calculated for this period"
        return f"Food cost calculated for {len(self.aggregates)} product(s)"


class FoodCostAggregationService:

    @staticmethod
    def line_revenue(row: ReceiptRow) -> Decimal:
        """
        Revenue of a receipt row: gross total, then total, then amount,
        then unit price times quantity plus variation.
        """
        for value in (row.total_price_gross, row.total, row.amount):
            if value is not None:
                return value
        return row.price * row.quantity + (row.variation or Decimal("0"))

    @staticmethod
    def validate_period(period_start, period_end, period_type):
        if period_type not in PeriodType.values:
            raise ValidationError(
                "periodType",
                f"periodType must be one of {', '.join(PeriodType.values)}",
            )
        if period_start is None or period_end is None:
            raise ValidationError("periodStart", "periodStart and periodEnd are required")
        if period_start > period_end:
            raise ValidationError("periodStart", "periodStart must not be after periodEnd")

    @staticmethod
    def _batch_size() -> int:
        return max(1, int(getattr(settings, "FOODCOST_BATCH_SIZE", 100)))

    @staticmethod
    def _receipts_in_window(tenant, period_start, period_end, period_type):
        receipts = Receipt.objects.for_tenant(tenant)
        if period_type != PeriodType.ALL_TIME:
            receipts = receipts.filter(receipt_date__date__range=(period_start, period_end))
        return receipts

    @staticmethod
    def _iter_rows(receipt_ids, batch_size):
        """Yields receipt rows, loading at most `batch_size` receipts per query."""
        for offset in range(0, len(receipt_ids), batch_size):
            chunk = receipt_ids[offset:offset + batch_size]
            rows = (
                ReceiptRow.all_objects
                .filter(receipt_id__in=chunk)
                .select_related("receipt", "dish_sale__dish")
                .order_by("receipt_id", "id")
            )
            for row in rows:
                yield row

    @staticmethod
    def _resolve_dish(row: ReceiptRow, dishes_by_external_id: Dict[str, Dish]) -> Optional[Dish]:
        dish = dishes_by_external_id.get(row.product_external_id)
        if dish is not None:
            return dish
        # Rows mapped by name at ingestion time carry a dish sale
        dish_sale = getattr(row, "dish_sale", None)
        return dish_sale.dish if dish_sale is not None else None

    @staticmethod
    def _collect(tenant, period_start, period_end, period_type):
        """
        Walks the window's rows once, returning per-product totals and the
        detailed history entries to store.
        """
        receipt_ids = list(
            FoodCostAggregationService._receipts_in_window(tenant, period_start, period_end, period_type)
            .order_by("receipt_date", "id")
            .values_list("id", flat=True)
        )
        dishes_by_external_id = {
            dish.external_id: dish
            for dish in Dish.objects.for_tenant(tenant).exclude(external_id__isnull=True).exclude(external_id="")
        }

        totals: "OrderedDict[str, ProductTotals]" = OrderedDict()
        history: List[SalesHistoryEntry] = []
        skipped = 0

        for row in FoodCostAggregationService._iter_rows(receipt_ids, FoodCostAggregationService._batch_size()):
            if not row.product_external_id:
                skipped += 1
                continue

            dish = FoodCostAggregationService._resolve_dish(row, dishes_by_external_id)
            row_total = FoodCostAggregationService.line_revenue(row).quantize(
                HISTORY_PRECISION, rounding=ROUND_HALF_UP
            )

            product = totals.get(row.product_external_id)
            if product is None:
                product = totals[row.product_external_id] = ProductTotals(
                    product_external_id=row.product_external_id,
                    description=row.description,
                    dish=dish,
                )
            elif product.dish is None and dish is not None:
                product.dish = dish
            product.quantity += row.quantity
            product.revenue += row_total

            history.append(SalesHistoryEntry(
                tenant=tenant,
                receipt=row.receipt,
                bill_id_external=row.receipt.external_id,
                row_id_external=row.row_id_external,
                dish=dish,
                product_external_id=row.product_external_id,
                description=row.description,
                quantity=row.quantity,
                unit_price=row.price,
                row_total=row_total,
                sold_at=row.receipt.receipt_date,
                raw_data=row.raw_data,
            ))

        if skipped:
            logger.debug(f"Skipped {skipped} row(s) without a product reference")
        return totals, history

    @staticmethod
    def _existing(tenant, period_start, period_end, period_type):
        return FoodCostAggregate.all_objects.filter(
            tenant=tenant,
            period_start=period_start,
            period_end=period_end,
            period_type=period_type,
        )

    @staticmethod
    def _delete_window(tenant, period_start, period_end, period_type):
        FoodCostAggregationService._existing(tenant, period_start, period_end, period_type).delete()
        history = SalesHistoryEntry.all_objects.filter(tenant=tenant)
        if period_type != PeriodType.ALL_TIME:
            history = history.filter(sold_at__date__range=(period_start, period_end))
        history.delete()

    @staticmethod
    def _store_history(tenant, entries):
        for entry in entries:
            SalesHistoryEntry.all_objects.update_or_create(
                tenant=tenant,
                bill_id_external=entry.bill_id_external,
                row_id_external=entry.row_id_external,
                defaults={
                    "receipt": entry.receipt,
                    "dish": entry.dish,
                    "product_external_id": entry.product_external_id,
                    "description": entry.description,
                    "quantity": entry.quantity,
                    "unit_price": entry.unit_price,
                    "row_total": entry.row_total,
                    "sold_at": entry.sold_at,
                    "raw_data": entry.raw_data,
                },
            )

    @staticmethod
    def _store_aggregates(tenant, totals, period_start, period_end, period_type):
        for product in totals.values():
            FoodCostAggregate.all_objects.update_or_create(
                tenant=tenant,
                product_external_id=product.product_external_id,
                period_start=period_start,
                period_end=period_end,
                period_type=period_type,
                defaults={
                    "dish": product.dish,
                    "dish_name": product.dish.name if product.dish else product.description,
                    "total_quantity_sold": product.quantity.quantize(QUANTITY, rounding=ROUND_HALF_UP),
                    "total_revenue": product.revenue.quantize(CENT, rounding=ROUND_HALF_UP),
                    "average_unit_price": product.average_unit_price,
                },
            )

    @staticmethod
    def calculate(tenant, period_start, period_end, period_type=PeriodType.CUSTOM,
                  force_recalculate: bool = False) -> AggregationResult:
        """
        Aggregate a restaurant's sales for one period.

        Without `force_recalculate`, an already aggregated period is returned
        as stored and nothing is written. With it, the period's aggregates and
        history rows are deleted and rebuilt in one transaction.

        Raises:
            ValidationError: invalid period
            UpstreamStorageError: the database rejected a read or write
        """
        FoodCostAggregationService.validate_period(period_start, period_end, period_type)
        key = f"{tenant.slug} {period_type} {period_start}..{period_end}"

        try:
            existing = FoodCostAggregationService._existing(tenant, period_start, period_end, period_type)
            if not force_recalculate and existing.exists():
                logger.info(f"Food cost for {key} already aggregated, returning stored rows")
                return AggregationResult(aggregates=list(existing.order_by("dish_name", "product_external_id")))

            with transaction.atomic():
                totals, history = FoodCostAggregationService._collect(
                    tenant, period_start, period_end, period_type
                )
                if force_recalculate:
                    FoodCostAggregationService._delete_window(tenant, period_start, period_end, period_type)
                FoodCostAggregationService._store_aggregates(tenant, totals, period_start, period_end, period_type)
                FoodCostAggregationService._store_history(tenant, history)

            aggregates = list(
                FoodCostAggregationService._existing(tenant, period_start, period_end, period_type)
                .order_by("dish_name", "product_external_id")
            )
        except DatabaseError as e:
            raise UpstreamStorageError("food cost aggregation", e)

        logger.info(
            f"Aggregated food cost for {key}: {len(aggregates)} product(s) from {len(history)} row(s)"
        )
        return AggregationResult(aggregates=aggregates, recalculated=True)
