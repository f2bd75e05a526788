from django.contrib import admin
from .models import DishSale, ProcessedBill, Receipt, ReceiptRow, SalesRecord


class ReceiptRowInline(admin.TabularInline):
    model = ReceiptRow
    extra = 0
    can_delete = False
    readonly_fields = [
        'row_id_external', 'product_external_id', 'description',
        'quantity', 'price', 'variation', 'total',
    ]
    fields = readonly_fields


class ReadOnlyAdmin(admin.ModelAdmin):
    """Imported sales data is write-once."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(Receipt)
class ReceiptAdmin(ReadOnlyAdmin):
    list_display = ['external_id', 'bill_number', 'tenant', 'receipt_date', 'total_amount']
    list_filter = ['tenant', 'receipt_date']
    search_fields = ['external_id', 'bill_number']
    inlines = [ReceiptRowInline]

    def get_queryset(self, request):
        return Receipt.all_objects.select_related('tenant')


@admin.register(SalesRecord)
class SalesRecordAdmin(ReadOnlyAdmin):
    list_display = ['date', 'tenant', 'revenue_total', 'covers_total', 'day_of_week']
    list_filter = ['tenant', 'date']

    def get_queryset(self, request):
        return SalesRecord.all_objects.select_related('tenant')


@admin.register(DishSale)
class DishSaleAdmin(ReadOnlyAdmin):
    list_display = ['dish_name', 'tenant', 'quantity_sold', 'revenue', 'meal_period']
    list_filter = ['tenant', 'meal_period']
    search_fields = ['dish_name']

    def get_queryset(self, request):
        return DishSale.all_objects.select_related('tenant')


@admin.register(ProcessedBill)
class ProcessedBillAdmin(ReadOnlyAdmin):
    list_display = ['bill_id_external', 'tenant', 'processed_at']
    list_filter = ['tenant']
    search_fields = ['bill_id_external']

    def get_queryset(self, request):
        return ProcessedBill.all_objects.select_related('tenant')
