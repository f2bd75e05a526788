from django.db import models
from django.utils.translation import gettext_lazy as _

from tenant.managers import TenantManager


class PeriodType(models.TextChoices):
    DAILY = 'daily', _('Daily')
    WEEKLY = 'weekly', _('Weekly')
    MONTHLY = 'monthly', _('Monthly')
    CUSTOM = 'custom', _('Custom')
    ALL_TIME = 'all_time', _('All time')


class FoodCostAggregate(models.Model):
    """
    Quantity sold and revenue of one product over one period.

    Recomputed wholesale on forced recalculation, otherwise left untouched.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='food_cost_aggregates'
    )
    product_external_id = models.CharField(max_length=100)
    dish = models.ForeignKey(
        'inventory.Dish',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='food_cost_aggregates'
    )
    dish_name = models.CharField(
        max_length=255,
        help_text=_("Dish name, or the point-of-sale description when the product is unmapped")
    )
    period_start = models.DateField()
    period_end = models.DateField()
    period_type = models.CharField(max_length=10, choices=PeriodType.choices)
    total_quantity_sold = models.DecimalField(max_digits=14, decimal_places=3)
    total_revenue = models.DecimalField(max_digits=14, decimal_places=2)
    average_unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Food Cost Aggregate")
        verbose_name_plural = _("Food Cost Aggregates")
        ordering = ['dish_name', 'product_external_id']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'product_external_id', 'period_start', 'period_end', 'period_type'],
                name='food_cost_aggregate_unique_period',
            ),
        ]
        indexes = [
            models.Index(
                fields=['tenant', 'period_type', 'period_start', 'period_end'],
                name='foodcost_period_idx',
            ),
        ]

    def __str__(self):
        return f"{self.dish_name} {self.period_start}..{self.period_end}"


class SalesHistoryEntry(models.Model):
    """
    One sold line item as used by aggregation. `row_total` keeps six
    decimals so aggregates can be rebuilt from history to the cent.
    """

    tenant = models.ForeignKey(
        'tenant.Tenant',
        on_delete=models.CASCADE,
        related_name='sales_history'
    )
    receipt = models.ForeignKey(
        'integrations.Receipt',
        on_delete=models.CASCADE,
        related_name='history_entries'
    )
    bill_id_external = models.CharField(max_length=100)
    row_id_external = models.CharField(max_length=100)
    dish = models.ForeignKey(
        'inventory.Dish',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sales_history'
    )
    product_external_id = models.CharField(max_length=100)
    description = models.CharField(
        max_length=255,
        blank=True,
        help_text=_("Point-of-sale description, kept for unmapped products")
    )
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    unit_price = models.DecimalField(max_digits=12, decimal_places=4)
    row_total = models.DecimalField(max_digits=18, decimal_places=6)
    sold_at = models.DateTimeField()
    raw_data = models.JSONField(default=dict, blank=True)

    objects = TenantManager()
    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Sales History Entry")
        verbose_name_plural = _("Sales History Entries")
        ordering = ['sold_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'bill_id_external', 'row_id_external'],
                name='sales_history_unique_row',
            ),
        ]
        indexes = [
            models.Index(fields=['tenant', 'sold_at'], name='sales_history_sold_at_idx'),
        ]

    def __str__(self):
        return f"{self.bill_id_external}/{self.row_id_external}"
