from django.contrib import admin

from .models import (
    Dish,
    Ingredient,
    IngredientAllocation,
    InventoryMovement,
    Label,
    Recipe,
    RecipeIngredient,
)


@admin.register(Ingredient)
class IngredientAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "unit", "cost_per_unit", "yield_percentage",
                    "current_stock", "allocated_stock", "labeled_stock")
    list_filter = ("tenant",)
    search_fields = ("name",)
    # Counters are owned by InventoryService
    readonly_fields = ("current_stock", "allocated_stock", "labeled_stock")

    def get_queryset(self, request):
        """Show all tenants in Django admin"""
        return Ingredient.all_objects.select_related("tenant")


class RecipeIngredientInline(admin.TabularInline):
    model = RecipeIngredient
    fk_name = "recipe"
    extra = 1
    autocomplete_fields = ("ingredient",)


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "portions", "is_semilavorato", "calculated_cost_per_portion")
    list_filter = ("tenant", "is_semilavorato")
    search_fields = ("name",)
    inlines = [RecipeIngredientInline]

    def get_queryset(self, request):
        return Recipe.all_objects.select_related("tenant")


@admin.register(Dish)
class DishAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "external_id", "selling_price", "recipe")
    list_filter = ("tenant",)
    search_fields = ("name", "external_id")

    def get_queryset(self, request):
        return Dish.all_objects.select_related("tenant", "recipe")


@admin.register(Label)
class LabelAdmin(admin.ModelAdmin):
    list_display = ("title", "tenant", "label_type", "status", "created_at")
    list_filter = ("tenant", "label_type", "status")
    search_fields = ("title",)
    readonly_fields = ("status", "status_changed_at")

    def get_queryset(self, request):
        return Label.all_objects.select_related("tenant")


@admin.register(IngredientAllocation)
class IngredientAllocationAdmin(admin.ModelAdmin):
    list_display = ("ingredient", "label", "allocated_quantity", "updated_at")

    def get_queryset(self, request):
        return IngredientAllocation.all_objects.select_related("ingredient", "label")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(InventoryMovement)
class InventoryMovementAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "ingredient", "label", "movement_type",
                    "quantity_change", "quantity_before", "quantity_after", "allocated_quantity_change")
    list_filter = ("tenant", "movement_type")

    def get_queryset(self, request):
        return InventoryMovement.all_objects.select_related("ingredient", "label")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
