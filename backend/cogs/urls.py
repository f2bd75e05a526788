"""
URL configuration for the COGS app.
"""
from django.urls import path

from cogs.views import (
    RecipeCostView,
    RecipeCostRefreshView,
    RecipeScaleView,
    DishAnalysisView,
    IngredientCostValidationView,
    UnitConversionView,
)

app_name = 'cogs'

urlpatterns = [
    path('recipes/<int:pk>/cost/', RecipeCostView.as_view(), name='recipe-cost'),
    path('recipes/<int:pk>/cost/refresh/', RecipeCostRefreshView.as_view(), name='recipe-cost-refresh'),
    path('recipes/<int:pk>/scale/', RecipeScaleView.as_view(), name='recipe-scale'),
    path('dishes/<int:pk>/analysis/', DishAnalysisView.as_view(), name='dish-analysis'),
    path('ingredients/<int:pk>/validate-cost/', IngredientCostValidationView.as_view(), name='ingredient-validate-cost'),
    path('convert/', UnitConversionView.as_view(), name='unit-convert'),
]
