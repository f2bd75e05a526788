"""
Pytest fixtures for food cost aggregation tests.
"""
import pytest
from datetime import datetime
from decimal import Decimal

from django.utils import timezone

from integrations.models import Receipt, ReceiptRow
from inventory.models import Dish


@pytest.fixture
def make_receipt(tenant_a):
    """
    Create a stored bill with rows. Each row is a dict of ReceiptRow fields;
    `row_id_external` defaults to the row position.
    """

    def _make(external_id, closed_at, rows, tenant=None):
        tenant = tenant or tenant_a
        if isinstance(closed_at, str):
            closed_at = timezone.make_aware(datetime.fromisoformat(closed_at))
        receipt = Receipt.all_objects.create(
            tenant=tenant,
            external_id=external_id,
            bill_number=external_id,
            sales_point_id=tenant.sales_point_id or "",
            receipt_date=closed_at,
            total_amount=Decimal("0"),
        )
        for position, row in enumerate(rows):
            fields = {"row_id_external": str(position + 1), "description": "Item"}
            fields.update(row)
            ReceiptRow.all_objects.create(tenant=tenant, receipt=receipt, **fields)
        return receipt

    return _make


@pytest.fixture
def carbonara(tenant_a):
    return Dish.all_objects.create(
        tenant=tenant_a,
        name="Carbonara",
        external_id="P-CARB",
        selling_price=Decimal("13.00"),
    )
