import logging

from django.db import DatabaseError
from django_filters import rest_framework as filters
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from tenant.permissions import CanManageStock, HasTenantContext
from .exceptions import InsufficientStockError, InventoryError
from .models import Ingredient, IngredientAllocation, InventoryMovement, Label, Recipe
from .serializers import (
    AllocationRequestSerializer,
    IngredientAllocationSerializer,
    IngredientSerializer,
    InventoryMovementSerializer,
    RecipeAllocationRequestSerializer,
    RestockRequestSerializer,
    StockStatusSerializer,
)
from .services import InventoryService

logger = logging.getLogger(__name__)


def _ledger_error_response(exc):
    """Translate a ledger failure into an API response."""
    if isinstance(exc, InsufficientStockError):
        return Response(
            {"error": str(exc), **exc.to_dict()},
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, InventoryError):
        return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    logger.error(f"Inventory ledger storage failure: {exc}")
    return Response(
        {"error": "Inventory storage failure", "details": str(exc)},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# --- Read side ---


class InventoryMovementFilter(filters.FilterSet):
    ingredient = filters.NumberFilter(field_name="ingredient_id")
    label = filters.NumberFilter(field_name="label_id")
    movement_type = filters.ChoiceFilter(choices=InventoryMovement.MovementType.choices)
    since = filters.IsoDateTimeFilter(field_name="timestamp", lookup_expr="gte")
    until = filters.IsoDateTimeFilter(field_name="timestamp", lookup_expr="lte")

    class Meta:
        model = InventoryMovement
        fields = ["ingredient", "label", "movement_type"]


class InventoryMovementListView(generics.ListAPIView):
    """Append-only movement log, newest first."""

    serializer_class = InventoryMovementSerializer
    permission_classes = [HasTenantContext]
    filterset_class = InventoryMovementFilter

    def get_queryset(self):
        # Evaluated at request time so the tenant context is applied
        return InventoryMovement.objects.select_related("ingredient", "label").order_by("-timestamp", "-id")


class LabelAllocationListView(generics.ListAPIView):
    """Open allocations of one label."""

    serializer_class = IngredientAllocationSerializer
    permission_classes = [HasTenantContext]

    def get_queryset(self):
        return IngredientAllocation.objects.filter(label_id=self.kwargs["pk"]).order_by("ingredient_id")


class IngredientListView(generics.ListAPIView):
    serializer_class = IngredientSerializer
    permission_classes = [HasTenantContext]

    def get_queryset(self):
        return Ingredient.objects.all()


class IngredientStockStatusView(APIView):
    permission_classes = [HasTenantContext]

    def get(self, request, pk):
        ingredient = Ingredient.objects.filter(pk=pk).first()
        if ingredient is None:
            return Response({"error": "Ingredient not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(StockStatusSerializer(InventoryService.get_stock_status(ingredient)).data)


class LowStockView(APIView):
    permission_classes = [HasTenantContext]

    def get(self, request):
        statuses = [
            InventoryService.get_stock_status(ingredient)
            for ingredient in InventoryService.get_low_stock_ingredients()
        ]
        return Response(StockStatusSerializer(statuses, many=True).data)


# --- Ledger operations ---


class IngredientRestockView(APIView):
    permission_classes = [CanManageStock]

    def post(self, request, pk):
        ingredient = Ingredient.objects.filter(pk=pk).first()
        if ingredient is None:
            return Response({"error": "Ingredient not found."}, status=status.HTTP_404_NOT_FOUND)

        serializer = RestockRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            movement = InventoryService.restock(
                ingredient,
                serializer.validated_data["quantity"],
                notes=serializer.validated_data["notes"],
            )
        except (InventoryError, DatabaseError) as e:
            return _ledger_error_response(e)

        return Response(InventoryMovementSerializer(movement).data, status=status.HTTP_201_CREATED)


class LabelAllocateView(APIView):
    """POST /api/inventory/labels/:id/allocate/"""

    permission_classes = [CanManageStock]

    def post(self, request, pk):
        label = Label.objects.filter(pk=pk).first()
        if label is None:
            return Response({"error": "Label not found."}, status=status.HTTP_404_NOT_FOUND)

        serializer = AllocationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        ingredient = Ingredient.objects.filter(pk=data["ingredient_id"]).first()
        if ingredient is None:
            return Response({"error": "Ingredient not found."}, status=status.HTTP_404_NOT_FOUND)

        try:
            movement = InventoryService.allocate(
                ingredient,
                label,
                data["quantity"],
                policy=data.get("policy"),
                notes=data["notes"],
            )
        except (InventoryError, DatabaseError) as e:
            return _ledger_error_response(e)

        return Response(InventoryMovementSerializer(movement).data, status=status.HTTP_201_CREATED)


class LabelRecipeAllocationView(APIView):
    """POST /api/inventory/labels/:id/allocate-recipe/"""

    permission_classes = [CanManageStock]

    def post(self, request, pk):
        label = Label.objects.filter(pk=pk).first()
        if label is None:
            return Response({"error": "Label not found."}, status=status.HTTP_404_NOT_FOUND)

        serializer = RecipeAllocationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        recipe = Recipe.objects.filter(pk=serializer.validated_data["recipe_id"]).first()
        if recipe is None:
            return Response({"error": "Recipe not found."}, status=status.HTTP_404_NOT_FOUND)

        try:
            movements = InventoryService.allocate_recipe_ingredients(
                recipe, label, serializer.validated_data["portions"]
            )
        except (InventoryError, DatabaseError) as e:
            return _ledger_error_response(e)

        return Response(
            InventoryMovementSerializer(movements, many=True).data,
            status=status.HTTP_201_CREATED,
        )


class LabelCloseView(APIView):
    """
    POST /api/inventory/labels/:id/consume/
    POST /api/inventory/labels/:id/discard/
    """

    permission_classes = [CanManageStock]
    close_action = None

    def post(self, request, pk):
        label = Label.objects.filter(pk=pk).first()
        if label is None:
            return Response({"error": "Label not found."}, status=status.HTTP_404_NOT_FOUND)

        try:
            movements = InventoryService.consume_or_discard(label, self.close_action)
        except (InventoryError, DatabaseError) as e:
            return _ledger_error_response(e)

        return Response({
            "label_id": label.pk,
            "status": label.status,
            "movements": InventoryMovementSerializer(movements, many=True).data,
        })


class LabelReleaseView(APIView):
    """POST /api/inventory/labels/:id/release/"""

    permission_classes = [CanManageStock]

    def post(self, request, pk):
        label = Label.objects.filter(pk=pk).first()
        if label is None:
            return Response({"error": "Label not found."}, status=status.HTTP_404_NOT_FOUND)

        try:
            movements = InventoryService.release(label)
        except (InventoryError, DatabaseError) as e:
            return _ledger_error_response(e)

        return Response({
            "label_id": label.pk,
            "status": label.status,
            "movements": InventoryMovementSerializer(movements, many=True).data,
        })
