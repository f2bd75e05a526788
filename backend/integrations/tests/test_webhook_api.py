"""
API tests for the Cassa in Cloud webhook endpoint.
"""
import pytest
from unittest.mock import patch

from django.db import DatabaseError

from integrations.models import DishSale, ProcessedBill, Receipt
from integrations.tests.factories import make_bill
from tenant.managers import get_current_tenant


@pytest.mark.django_db
@patch("reports.tasks.recalculate_food_cost.delay")
class TestCassaInCloudWebhook:

    def test_valid_bill(self, mock_delay, post_webhook, tenant_a, spaghetti):
        response = post_webhook(make_bill())

        assert response.status_code == 200
        assert response.data["success"] is True
        assert response.data["billId"] == "BILL-1"
        assert response.data["warnings"] == ["Unmapped product: Acqua naturale (ID: P-999)"]
        assert DishSale.all_objects.count() == 1

    def test_replay_is_idempotent(self, mock_delay, post_webhook, tenant_a, spaghetti):
        post_webhook(make_bill())
        response = post_webhook(make_bill())

        assert response.status_code == 200
        assert response.data["message"] == "Bill already processed"
        assert Receipt.all_objects.count() == 1
        assert DishSale.all_objects.count() == 1
        assert ProcessedBill.all_objects.count() == 1

    def test_no_session_or_csrf_needed(self, mock_delay, tenant_a):
        from rest_framework.test import APIClient
        from integrations.services import SignatureService
        from integrations.tests.factories import WEBHOOK_SECRET, WEBHOOK_URL, encode

        client = APIClient(enforce_csrf_checks=True)
        payload = encode(make_bill())
        response = client.generic(
            "POST",
            WEBHOOK_URL,
            payload,
            content_type="application/json",
            HTTP_X_CN_SIGNATURE="sha1=" + SignatureService.compute_signature(payload, WEBHOOK_SECRET),
            HTTP_X_CN_OPERATION="BILL/CLOSE",
        )

        assert response.status_code == 200

    def test_missing_signature_is_401(self, mock_delay, post_webhook, tenant_a):
        response = post_webhook(make_bill(), sign=False)

        assert response.status_code == 401
        assert not Receipt.all_objects.exists()

    def test_invalid_signature_is_403(self, mock_delay, post_webhook, tenant_a):
        response = post_webhook(make_bill(), signature="0" * 40)

        assert response.status_code == 403
        assert not Receipt.all_objects.exists()

    def test_missing_secret_is_401(self, mock_delay, post_webhook, tenant_a, settings):
        settings.CASSA_IN_CLOUD_WEBHOOK_SECRET = ""

        response = post_webhook(make_bill())

        assert response.status_code == 401

    def test_non_bill_operation_is_noop(self, mock_delay, post_webhook, tenant_a):
        response = post_webhook({"product": {"id": "P-1"}}, operation="PRODUCT/UPDATE")

        assert response.status_code == 200
        assert response.data == {"success": True, "message": "Operation ignored"}
        assert not Receipt.all_objects.exists()

    def test_malformed_payload_is_400(self, mock_delay, post_webhook, tenant_a):
        response = post_webhook({"id": "BILL-1"})

        assert response.status_code == 400
        assert "salesPointId" in response.data["details"]

    def test_unmapped_restaurant_is_400(self, mock_delay, post_webhook, tenant_a):
        response = post_webhook(make_bill(sales_point_id="SP-404"))

        assert response.status_code == 400
        assert "SP-404" in response.data["error"]

    def test_storage_failure_is_500(self, mock_delay, post_webhook, tenant_a):
        with patch(
            "integrations.services.ingestion_service.SalesIngestionService._write_bill",
            side_effect=DatabaseError("disk full"),
        ):
            response = post_webhook(make_bill())

        assert response.status_code == 500
        assert response.data["error"] == "Failed to store bill"
        assert "disk full" in response.data["details"]

    def test_tenant_context_is_cleared(self, mock_delay, post_webhook, tenant_a):
        post_webhook(make_bill())

        assert get_current_tenant() is None

    def test_out_of_range_closed_at_is_400(self, mock_delay, post_webhook, tenant_a):
        response = post_webhook(make_bill(closed_at="0001-01-01T00:00:00+14:00"))

        assert response.status_code == 400
        assert "closedAt" in response.data["details"]
        assert not Receipt.all_objects.exists()

    def test_unexpected_error_is_json_500(self, mock_delay, post_webhook, tenant_a):
        with patch(
            "integrations.services.ingestion_service.SalesIngestionService.ingest_bill",
            side_effect=RuntimeError("matcher exploded"),
        ), patch("integrations.views.logger") as mock_logger:
            response = post_webhook(make_bill())

        assert response.status_code == 500
        assert response["Content-Type"] == "application/json"
        assert response.data == {"error": "Failed to process bill", "details": "matcher exploded"}
        assert mock_logger.error.call_args.kwargs["exc_info"] is True
        assert get_current_tenant() is None
