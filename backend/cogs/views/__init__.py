"""
COGS views package.
"""
from .recipe_cost_views import (
    RecipeCostView,
    RecipeCostRefreshView,
    RecipeScaleView,
    DishAnalysisView,
    IngredientCostValidationView,
    UnitConversionView,
)

__all__ = [
    'RecipeCostView',
    'RecipeCostRefreshView',
    'RecipeScaleView',
    'DishAnalysisView',
    'IngredientCostValidationView',
    'UnitConversionView',
]
