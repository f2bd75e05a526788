"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest
from decimal import Decimal

from tenant.managers import set_current_tenant


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def reset_tenant_context():
    """
    Reset tenant context after each test.

    CRITICAL: This prevents tenant context from leaking between tests.
    If tenant context leaks, tests may pass when they should fail.
    """
    yield  # Run the test

    # After test: ALWAYS reset to None
    set_current_tenant(None)


# ============================================================================
# TENANT FIXTURES
# ============================================================================

@pytest.fixture
def tenant_a(db):
    """Restaurant A, linked to point-of-sale sales point SP-A."""
    from tenant.models import Tenant
    return Tenant.objects.create(
        name="Trattoria A",
        slug="trattoria-a",
        sales_point_id="SP-A",
        is_active=True,
    )


@pytest.fixture
def tenant_b(db):
    """Restaurant B, used to check that data never crosses tenants."""
    from tenant.models import Tenant
    return Tenant.objects.create(
        name="Osteria B",
        slug="osteria-b",
        sales_point_id="SP-B",
        is_active=True,
    )


@pytest.fixture
def tenant_context(tenant_a):
    """Activate tenant A for code that relies on TenantManager."""
    set_current_tenant(tenant_a)
    return tenant_a


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def staff_user(db):
    from django.contrib.auth.models import User
    return User.objects.create_user(
        username="chef",
        email="chef@test.com",
        password="test-password",
        is_staff=True,
    )


@pytest.fixture
def regular_user(db):
    from django.contrib.auth.models import User
    return User.objects.create_user(
        username="waiter",
        email="waiter@test.com",
        password="test-password",
    )


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/health/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def staff_client(api_client, staff_user, tenant_a):
    """
    Authenticated staff client bound to tenant A through the X-Tenant header.

    Usage:
        def test_protected_endpoint(staff_client):
            response = staff_client.get('/api/inventory/ingredients/')
            assert response.status_code == 200
    """
    api_client.force_authenticate(user=staff_user)
    api_client.credentials(HTTP_X_TENANT=tenant_a.slug)
    return api_client


@pytest.fixture
def user_client(regular_user, tenant_a):
    """Authenticated non-staff client bound to tenant A."""
    from rest_framework.test import APIClient
    client = APIClient()
    client.force_authenticate(user=regular_user)
    client.credentials(HTTP_X_TENANT=tenant_a.slug)
    return client


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================

@pytest.fixture
def make_ingredient(tenant_a):
    """Factory for ingredients of tenant A."""
    from inventory.models import Ingredient

    def _make(name="Farina", unit="kg", cost_per_unit="1.00", **kwargs):
        kwargs.setdefault("tenant", tenant_a)
        return Ingredient.all_objects.create(
            name=name,
            unit=unit,
            cost_per_unit=Decimal(str(cost_per_unit)),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_label(tenant_a):
    """Factory for active labels of tenant A."""
    from inventory.models import Label

    def _make(label_type=Label.LabelType.INGREDIENT, title="Label", **kwargs):
        kwargs.setdefault("tenant", tenant_a)
        return Label.all_objects.create(
            title=title,
            label_type=label_type,
            **kwargs,
        )

    return _make
