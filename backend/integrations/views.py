"""
Webhook endpoint for Cassa in Cloud bill notifications.

The caller is the point-of-sale cloud, not a logged-in user: requests are
authenticated by the HMAC signature over the raw body and the restaurant is
resolved from the bill's sales point, bypassing the tenant middleware.
"""
import logging

from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core_backend.exceptions import UpstreamStorageError
from integrations.exceptions import PayloadError, SignatureInvalidError, UnmappedRestaurantError
from integrations.services import SalesIngestionService

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class CassaInCloudWebhookView(APIView):
    """
    Receives bill events and runs them through the ingestion pipeline.

    Duplicate deliveries answer 200 so the sender stops retrying.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        payload = request.body
        signature = request.META.get("HTTP_X_CN_SIGNATURE")
        operation = request.META.get("HTTP_X_CN_OPERATION")

        try:
            result = SalesIngestionService.process_webhook(payload, signature, operation)
        except SignatureInvalidError as e:
            logger.warning(f"Cassa in Cloud webhook: {e}")
            return Response({"error": str(e)}, status=e.status_code)
        except PayloadError as e:
            logger.error(f"Cassa in Cloud webhook: {e} {e.errors}")
            return Response({"error": str(e), "details": e.errors}, status=status.HTTP_400_BAD_REQUEST)
        except UnmappedRestaurantError as e:
            logger.error(f"Cassa in Cloud webhook: {e}")
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except UpstreamStorageError as e:
            logger.error(f"Cassa in Cloud webhook: storage failure - {e}", exc_info=True)
            return Response(
                {"error": "Failed to store bill", "details": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except Exception as e:
            logger.error(f"Cassa in Cloud webhook: unexpected error - {e}", exc_info=True)
            return Response(
                {"error": "Failed to process bill", "details": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response(result.to_response(), status=status.HTTP_200_OK)
