"""
COGS Services.

- ConversionService: Unit conversion handling
- CostingService: Recipe line, recipe and per-portion costing
"""
from cogs.services.conversion_service import ConversionService
from cogs.services.costing_service import (
    CostingService,
    LineCostResult,
    RecipeCostBreakdown,
    UnitPath,
)

__all__ = [
    'ConversionService',
    'CostingService',
    'LineCostResult',
    'RecipeCostBreakdown',
    'UnitPath',
]
