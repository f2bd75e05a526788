from reports.services.food_cost_service import (
    AggregationResult,
    FoodCostAggregationService,
    ProductTotals,
)

__all__ = [
    'AggregationResult',
    'FoodCostAggregationService',
    'ProductTotals',
]
