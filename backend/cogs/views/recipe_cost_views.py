"""
Recipe cost views - breakdown, refresh, scaling and dish analysis.
"""
from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response

from inventory.models import Dish, Ingredient, Recipe
from cogs.exceptions import COGSError, IncompatibleUnitsError
from cogs.serializers import (
    ConversionRequestSerializer,
    RecipeCostBreakdownSerializer,
    ScaledLineSerializer,
)
from cogs.services import ConversionService, CostingService
from tenant.permissions import HasTenantContext


def _tenant_lookup(queryset, pk):
    # Tenant-scoped lookup; other restaurants' rows resolve to 404
    return queryset.filter(pk=pk).first()


class RecipeCostView(APIView):
    """
    GET /api/cogs/recipes/:id/cost/
    Cost breakdown of a recipe, including which lines could not be converted.
    """
    permission_classes = [HasTenantContext]

    def get(self, request, pk):
        recipe = _tenant_lookup(Recipe.objects.all(), pk)
        if recipe is None:
            return Response({'error': 'Recipe not found.'}, status=status.HTTP_404_NOT_FOUND)

        try:
            breakdown = CostingService().compute_recipe_cost(recipe)
        except COGSError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(RecipeCostBreakdownSerializer(breakdown).data)


class RecipeCostRefreshView(APIView):
    """
    POST /api/cogs/recipes/:id/cost/refresh/
    Recompute the recipe cost and store it on the recipe.
    """
    permission_classes = [HasTenantContext]

    def post(self, request, pk):
        recipe = _tenant_lookup(Recipe.objects.all(), pk)
        if recipe is None:
            return Response({'error': 'Recipe not found.'}, status=status.HTTP_404_NOT_FOUND)

        try:
            breakdown = CostingService().refresh_recipe_cost(recipe)
        except COGSError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(RecipeCostBreakdownSerializer(breakdown).data)


class RecipeScaleView(APIView):
    """
    GET /api/cogs/recipes/:id/scale/?portions=N
    """
    permission_classes = [HasTenantContext]

    def get(self, request, pk):
        recipe = _tenant_lookup(Recipe.objects.all(), pk)
        if recipe is None:
            return Response({'error': 'Recipe not found.'}, status=status.HTTP_404_NOT_FOUND)

        try:
            portions = Decimal(request.query_params.get('portions', ''))
        except InvalidOperation:
            return Response({'error': 'portions must be a number.'}, status=status.HTTP_400_BAD_REQUEST)
        if not portions.is_finite():
            return Response({'error': 'portions must be a finite number.'}, status=status.HTTP_400_BAD_REQUEST)
        if portions <= 0:
            return Response({'error': 'portions must be greater than 0.'}, status=status.HTTP_400_BAD_REQUEST)

        lines = CostingService().scale_recipe(recipe, portions)
        return Response({
            'recipe_id': recipe.pk,
            'portions': recipe.portions,
            'target_portions': portions,
            'lines': ScaledLineSerializer(lines, many=True).data,
        })


class DishAnalysisView(APIView):
    """
    GET /api/cogs/dishes/:id/analysis/
    Food cost percentage and margin of a dish.
    """
    permission_classes = [HasTenantContext]

    def get(self, request, pk):
        dish = _tenant_lookup(Dish.objects.select_related('recipe'), pk)
        if dish is None:
            return Response({'error': 'Dish not found.'}, status=status.HTTP_404_NOT_FOUND)

        try:
            analysis = CostingService().analyze_dish(dish)
        except COGSError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(analysis)


class IngredientCostValidationView(APIView):
    """
    GET /api/cogs/ingredients/:id/validate-cost/
    """
    permission_classes = [HasTenantContext]

    def get(self, request, pk):
        ingredient = _tenant_lookup(Ingredient.objects.all(), pk)
        if ingredient is None:
            return Response({'error': 'Ingredient not found.'}, status=status.HTTP_404_NOT_FOUND)

        return Response(CostingService.validate_ingredient_cost(ingredient))


class UnitConversionView(APIView):
    """
    POST /api/cogs/convert/
    """
    permission_classes = [HasTenantContext]

    def post(self, request):
        serializer = ConversionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        service = ConversionService()
        try:
            converted = service.convert(data['quantity'], data['from_unit'], data['to_unit'])
        except IncompatibleUnitsError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'quantity': data['quantity'],
            'from_unit': data['from_unit'],
            'to_unit': data['to_unit'],
            'converted_quantity': converted,
        })
