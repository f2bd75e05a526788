from decimal import Decimal

from rest_framework import serializers

from .models import Ingredient, InventoryMovement, IngredientAllocation
from .policies import AllocationPolicy


class IngredientSerializer(serializers.ModelSerializer):
    available_stock = serializers.DecimalField(max_digits=12, decimal_places=3, read_only=True)

    class Meta:
        model = Ingredient
        fields = [
            "id",
            "name",
            "unit",
            "cost_per_unit",
            "yield_percentage",
            "effective_cost_per_unit",
            "current_stock",
            "allocated_stock",
            "labeled_stock",
            "available_stock",
            "min_stock_threshold",
        ]
        # Counters only change through the ledger endpoints
        read_only_fields = ["current_stock", "allocated_stock", "labeled_stock"]


class InventoryMovementSerializer(serializers.ModelSerializer):
    ingredient_name = serializers.CharField(source="ingredient.name", read_only=True)
    label_title = serializers.CharField(source="label.title", read_only=True, default=None)

    class Meta:
        model = InventoryMovement
        fields = [
            "id",
            "ingredient",
            "ingredient_name",
            "label",
            "label_title",
            "movement_type",
            "quantity_change",
            "quantity_before",
            "quantity_after",
            "allocated_quantity_change",
            "notes",
            "timestamp",
        ]
        read_only_fields = fields


class IngredientAllocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = IngredientAllocation
        fields = ["id", "ingredient", "label", "allocated_quantity", "created_at", "updated_at"]
        read_only_fields = fields


class StockStatusSerializer(serializers.Serializer):
    ingredient_id = serializers.IntegerField()
    name = serializers.CharField()
    unit = serializers.CharField()
    current_stock = serializers.DecimalField(max_digits=12, decimal_places=3)
    allocated_stock = serializers.DecimalField(max_digits=12, decimal_places=3)
    labeled_stock = serializers.DecimalField(max_digits=12, decimal_places=3)
    available_stock = serializers.DecimalField(max_digits=12, decimal_places=3)
    min_stock_threshold = serializers.DecimalField(max_digits=12, decimal_places=3)
    is_low_stock = serializers.BooleanField()


# ============================================================================
# LEDGER OPERATION INPUTS
# ============================================================================

class AllocationRequestSerializer(serializers.Serializer):
    ingredient_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal("0.001"))
    policy = serializers.ChoiceField(
        choices=[policy.value for policy in AllocationPolicy],
        required=False,
        help_text="Override the policy registered for the label type",
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_policy(self, value):
        return AllocationPolicy(value)


class RecipeAllocationRequestSerializer(serializers.Serializer):
    recipe_id = serializers.IntegerField()
    portions = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal("0.001"))


class RestockRequestSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal("0.001"))
    notes = serializers.CharField(required=False, allow_blank=True, default="")
