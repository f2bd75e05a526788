from rest_framework import serializers

from .models import FoodCostAggregate, PeriodType


class FoodCostAggregateSerializer(serializers.ModelSerializer):
    dish_id = serializers.PrimaryKeyRelatedField(source="dish", read_only=True)

    class Meta:
        model = FoodCostAggregate
        fields = [
            "id",
            "product_external_id",
            "dish_id",
            "dish_name",
            "period_start",
            "period_end",
            "period_type",
            "total_quantity_sold",
            "total_revenue",
            "average_unit_price",
            "updated_at",
        ]
        read_only_fields = fields


class FoodCostAggregationRequestSerializer(serializers.Serializer):
    restaurantId = serializers.UUIDField()
    periodStart = serializers.DateField()
    periodEnd = serializers.DateField()
    periodType = serializers.ChoiceField(choices=PeriodType.choices)
    forceRecalculate = serializers.BooleanField(default=False, required=False)

    def validate(self, attrs):
        if attrs["periodStart"] > attrs["periodEnd"]:
            raise serializers.ValidationError(
                {"periodStart": "periodStart must not be after periodEnd."}
            )
        return attrs
