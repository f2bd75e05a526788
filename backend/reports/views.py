import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core_backend.exceptions import UpstreamStorageError, ValidationError
from tenant.models import Tenant

from .serializers import FoodCostAggregateSerializer, FoodCostAggregationRequestSerializer
from .services import FoodCostAggregationService

logger = logging.getLogger(__name__)


class FoodCostAggregationView(APIView):
    """
    POST /api/reports/food-cost/

    Aggregates a restaurant's sales for a period. Repeating a request
    without forceRecalculate returns the stored aggregates unchanged.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = FoodCostAggregationRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"success": False, "error": "Invalid request", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        params = serializer.validated_data

        tenant = Tenant.objects.filter(pk=params["restaurantId"], is_active=True).first()
        if tenant is None:
            return Response(
                {"success": False, "error": "Restaurant not found"},
                status=status.HTTP_404_NOT_FOUND,
            )

        # Users bound to one restaurant can't aggregate another's sales
        request_tenant = getattr(request, "tenant", None)
        if request_tenant is not None and request_tenant.pk != tenant.pk and not request.user.is_staff:
            return Response(
                {"success": False, "error": "Restaurant does not match the current tenant"},
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            result = FoodCostAggregationService.calculate(
                tenant,
                params["periodStart"],
                params["periodEnd"],
                params["periodType"],
                force_recalculate=params.get("forceRecalculate", False),
            )
        except ValidationError as e:
            return Response(
                {"success": False, "error": str(e), "field": e.field},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except UpstreamStorageError as e:
            logger.error(f"Food cost aggregation failed for {tenant.slug}: {e}", exc_info=True)
            return Response(
                {"success": False, "error": "Food cost aggregation failed", "details": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response({
            "success": True,
            "data": FoodCostAggregateSerializer(result.aggregates, many=True).data,
            "message": result.message,
        })
