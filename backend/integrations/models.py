from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from tenant.managers import TenantManager


class Receipt(models.Model):
    """
    A point-of-sale bill as delivered by Cassa in Cloud. Write-once.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='receipts'
    )
    external_id = models.CharField(
        max_length=100,
        help_text=_("Bill identifier issued by the point-of-sale system")
    )
    bill_number = models.CharField(max_length=100, blank=True)
    sales_point_id = models.CharField(max_length=100)
    table_number = models.CharField(max_length=50, blank=True)
    receipt_date = models.DateTimeField(help_text=_("When the bill was closed"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    raw_payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Receipt")
        verbose_name_plural = _("Receipts")
        ordering = ['-receipt_date']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'external_id'],
                name='receipt_unique_external_id_per_tenant',
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'receipt_date'], name='receipt_tenant_date_idx'),
        ]

    def __str__(self):
        return f"Bill {self.bill_number or self.external_id}"


class ReceiptRow(models.Model):
    """A single line item of a bill. Write-once."""

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='receipt_rows'
    )
    receipt = models.ForeignKey(Receipt, on_delete=models.CASCADE, related_name='rows')
    row_id_external = models.CharField(max_length=100)
    product_external_id = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        help_text=_("Point-of-sale product id; empty for discounts and free-text rows")
    )
    category_external_id = models.CharField(max_length=100, null=True, blank=True)
    description = models.CharField(max_length=255, blank=True)
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    price = models.DecimalField(
        max_digits=12, decimal_places=4, default=Decimal('0'),
        help_text=_("Unit price")
    )
    variation = models.DecimalField(
        max_digits=12, decimal_places=4, default=Decimal('0'),
        help_text=_("Price variation applied to the row (modifiers, discounts)")
    )
    total = models.DecimalField(max_digits=12, decimal_places=4, null=True, blank=True)
    total_price_gross = models.DecimalField(max_digits=12, decimal_places=4, null=True, blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=4, null=True, blank=True)
    raw_data = models.JSONField(default=dict, blank=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Receipt Row")
        verbose_name_plural = _("Receipt Rows")
        ordering = ['receipt_id', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['receipt', 'row_id_external'],
                name='receipt_row_unique_external_id',
            ),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.description}"


class SalesRecord(models.Model):
    """Aggregate sales row written once per ingested bill."""

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='sales_records'
    )
    receipt = models.OneToOneField(Receipt, on_delete=models.CASCADE, related_name='sales_record')
    date = models.DateField()
    covers_total = models.PositiveIntegerField(default=1)
    revenue_total = models.DecimalField(max_digits=12, decimal_places=2)
    day_of_week = models.PositiveSmallIntegerField(help_text=_("0 = Sunday ... 6 = Saturday"))
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Sales Record")
        verbose_name_plural = _("Sales Records")
        ordering = ['-date']

    def __str__(self):
        return f"{self.date} {self.revenue_total}"


class DishSale(models.Model):
    """A bill line matched to an internal dish."""

    class MealPeriod(models.TextChoices):
        LUNCH = 'lunch', _('Lunch')
        DINNER = 'dinner', _('Dinner')
        OTHER = 'other', _('Other')

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='dish_sales'
    )
    sales_record = models.ForeignKey(SalesRecord, on_delete=models.CASCADE, related_name='dish_sales')
    receipt_row = models.OneToOneField(ReceiptRow, on_delete=models.CASCADE, related_name='dish_sale')
    dish = models.ForeignKey('inventory.Dish', on_delete=models.PROTECT, related_name='sales')
    dish_name = models.CharField(max_length=255)
    quantity_sold = models.DecimalField(max_digits=12, decimal_places=3)
    revenue = models.DecimalField(max_digits=12, decimal_places=2)
    meal_period = models.CharField(max_length=10, choices=MealPeriod.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Dish Sale")
        verbose_name_plural = _("Dish Sales")

    def __str__(self):
        return f"{self.quantity_sold} x {self.dish_name}"


class ProcessedBill(models.Model):
    """
    Deduplication marker: one row per bill already ingested for a restaurant.
    Inserted in the same transaction as the bill's data.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='processed_bills'
    )
    bill_id_external = models.CharField(max_length=100)
    processed_row_ids = models.JSONField(default=list, blank=True)
    last_updated_at = models.DateTimeField(
        null=True, blank=True,
        help_text=_("Closing time reported by the point-of-sale system")
    )
    processed_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Processed Bill")
        verbose_name_plural = _("Processed Bills")
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'bill_id_external'],
                name='processed_bill_unique_per_tenant',
            ),
        ]

    def __str__(self):
        return f"{self.tenant_id}:{self.bill_id_external}"
