"""
COGS serializers package.
"""
from .cost_serializers import (
    LineCostSerializer,
    RecipeCostBreakdownSerializer,
    ScaledLineSerializer,
    ConversionRequestSerializer,
)

__all__ = [
    'LineCostSerializer',
    'RecipeCostBreakdownSerializer',
    'ScaledLineSerializer',
    'ConversionRequestSerializer',
]
