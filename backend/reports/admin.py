from django.contrib import admin
from .models import FoodCostAggregate, SalesHistoryEntry


@admin.register(FoodCostAggregate)
class FoodCostAggregateAdmin(admin.ModelAdmin):
    list_display = [
        'dish_name', 'tenant', 'period_type', 'period_start', 'period_end',
        'total_quantity_sold', 'total_revenue', 'average_unit_price',
    ]
    list_filter = ['tenant', 'period_type']
    search_fields = ['dish_name', 'product_external_id']
    readonly_fields = ['created_at', 'updated_at']

    def get_queryset(self, request):
        return FoodCostAggregate.all_objects.select_related('tenant', 'dish')


@admin.register(SalesHistoryEntry)
class SalesHistoryEntryAdmin(admin.ModelAdmin):
    list_display = ['bill_id_external', 'row_id_external', 'tenant', 'description', 'quantity', 'row_total', 'sold_at']
    list_filter = ['tenant']
    search_fields = ['bill_id_external', 'product_external_id', 'description']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        return SalesHistoryEntry.all_objects.select_related('tenant', 'dish')
