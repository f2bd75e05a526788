"""
Pytest fixtures for sales ingestion tests.
"""
import pytest
from decimal import Decimal

from integrations.services import SignatureService
from integrations.tests.factories import WEBHOOK_SECRET, WEBHOOK_URL, encode
from inventory.models import Dish


@pytest.fixture(autouse=True)
def webhook_settings(settings):
    settings.CASSA_IN_CLOUD_WEBHOOK_SECRET = WEBHOOK_SECRET
    settings.TIME_ZONE = "Europe/Rome"
    return settings


@pytest.fixture
def spaghetti(tenant_a):
    return Dish.all_objects.create(
        tenant=tenant_a,
        name="Spaghetti al pomodoro",
        external_id="P-100",
        selling_price=Decimal("11.00"),
    )


@pytest.fixture
def post_webhook(api_client):
    """POST a body to the webhook, signed with the test secret unless told otherwise."""

    def _post(body, operation="BILL/CLOSE", signature=None, sign=True):
        payload = body if isinstance(body, bytes) else encode(body)
        headers = {"HTTP_X_CN_OPERATION": operation}
        if signature is None and sign:
            signature = SignatureService.compute_signature(payload, WEBHOOK_SECRET)
        if signature is not None:
            headers["HTTP_X_CN_SIGNATURE"] = signature
        return api_client.generic("POST", WEBHOOK_URL, payload, content_type="application/json", **headers)

    return _post
