from django.urls import path

from .models import InventoryMovement
from .views import (
    IngredientListView,
    IngredientRestockView,
    IngredientStockStatusView,
    InventoryMovementListView,
    LabelAllocateView,
    LabelAllocationListView,
    LabelCloseView,
    LabelRecipeAllocationView,
    LabelReleaseView,
    LowStockView,
)

app_name = "inventory"

urlpatterns = [
    path("ingredients/", IngredientListView.as_view(), name="ingredient-list"),
    path("ingredients/low-stock/", LowStockView.as_view(), name="low-stock"),
    path("ingredients/<int:pk>/stock/", IngredientStockStatusView.as_view(), name="ingredient-stock"),
    path("ingredients/<int:pk>/restock/", IngredientRestockView.as_view(), name="ingredient-restock"),
    path("labels/<int:pk>/allocations/", LabelAllocationListView.as_view(), name="label-allocations"),
    path("labels/<int:pk>/allocate/", LabelAllocateView.as_view(), name="label-allocate"),
    path("labels/<int:pk>/allocate-recipe/", LabelRecipeAllocationView.as_view(), name="label-allocate-recipe"),
    path(
        "labels/<int:pk>/consume/",
        LabelCloseView.as_view(close_action=InventoryMovement.MovementType.CONSUMED),
        name="label-consume",
    ),
    path(
        "labels/<int:pk>/discard/",
        LabelCloseView.as_view(close_action=InventoryMovement.MovementType.DISCARDED),
        name="label-discard",
    ),
    path("labels/<int:pk>/release/", LabelReleaseView.as_view(), name="label-release"),
    path("movements/", InventoryMovementListView.as_view(), name="movement-list"),
]
