"""
Serializers validating Cassa in Cloud bill payloads.
"""
from dateutil import parser
from django.utils import timezone
from rest_framework import serializers


class BillItemSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=100)
    name = serializers.CharField(max_length=255, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=18, decimal_places=6)
    unitPrice = serializers.DecimalField(max_digits=18, decimal_places=6)
    totalPrice = serializers.DecimalField(max_digits=18, decimal_places=6)
    productId = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    categoryId = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)


class BillSerializer(serializers.Serializer):
    """
    A closed bill with its line items.

    closedAt is parsed with dateutil; naive timestamps are read in the
    restaurant's configured time zone.
    """
    id = serializers.CharField(max_length=100)
    salesPointId = serializers.CharField(max_length=100)
    closedAt = serializers.CharField()
    totalAmount = serializers.DecimalField(max_digits=18, decimal_places=6)
    items = BillItemSerializer(many=True, allow_empty=True)
    billNumber = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    tableNumber = serializers.CharField(max_length=50, required=False, allow_null=True, allow_blank=True)

    def validate_closedAt(self, value):
        try:
            closed_at = parser.isoparse(value)
        except (ValueError, TypeError, OverflowError):
            raise serializers.ValidationError("closedAt must be an ISO 8601 timestamp.")
        try:
            if timezone.is_naive(closed_at):
                closed_at = timezone.make_aware(closed_at)
            # the business day is read in local time downstream
            timezone.localtime(closed_at)
        except (ValueError, OverflowError):
            raise serializers.ValidationError("closedAt is outside the supported date range.")
        return closed_at
