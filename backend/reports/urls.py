from django.urls import path
from .views import FoodCostAggregationView

app_name = "reports"

urlpatterns = [
    path("food-cost/", FoodCostAggregationView.as_view(), name="food-cost-aggregation"),
]
