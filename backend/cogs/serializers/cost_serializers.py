"""
Recipe cost serializers - for cost breakdown and conversion responses.
"""
from rest_framework import serializers


class LineCostSerializer(serializers.Serializer):
    """Serializer for a single recipe line's cost."""
    line_id = serializers.IntegerField()
    name = serializers.CharField()
    is_semilavorato = serializers.BooleanField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=4)
    unit = serializers.CharField()
    base_quantity = serializers.DecimalField(max_digits=18, decimal_places=6)
    base_unit = serializers.CharField()
    unit_cost = serializers.DecimalField(max_digits=18, decimal_places=6)
    extended_cost = serializers.DecimalField(max_digits=18, decimal_places=4)
    unit_path = serializers.SerializerMethodField(
        help_text="same_unit, converted, or used_as_is when units were incompatible"
    )
    yield_source = serializers.CharField()
    applied_yield = serializers.DecimalField(max_digits=5, decimal_places=2, allow_null=True)

    def get_unit_path(self, obj):
        return obj.unit_path.value


class RecipeCostBreakdownSerializer(serializers.Serializer):
    """
    Complete cost breakdown for a recipe.

    Used in GET /api/cogs/recipes/:id/cost/
    """
    recipe_id = serializers.IntegerField()
    recipe_name = serializers.CharField()
    portions = serializers.IntegerField()
    is_semilavorato = serializers.BooleanField()
    total_cost = serializers.DecimalField(max_digits=12, decimal_places=2)
    cost_per_portion = serializers.DecimalField(max_digits=12, decimal_places=2)
    lines = LineCostSerializer(many=True)
    unconverted_lines = serializers.ListField(child=serializers.IntegerField())


class ScaledLineSerializer(serializers.Serializer):
    line_id = serializers.IntegerField()
    name = serializers.CharField()
    unit = serializers.CharField()
    original_quantity = serializers.DecimalField(max_digits=14, decimal_places=4)
    scaled_quantity = serializers.DecimalField(max_digits=18, decimal_places=4)


class ConversionRequestSerializer(serializers.Serializer):
    """Input for POST /api/cogs/convert/."""
    quantity = serializers.DecimalField(max_digits=18, decimal_places=6)
    from_unit = serializers.CharField(max_length=20)
    to_unit = serializers.CharField(max_length=20)
