from contextlib import contextmanager
from threading import local

from django.db import models

# Restaurant bound to the current request or task
_thread_locals = local()


def set_current_tenant(tenant):
    """
    Bind a restaurant to the current thread, or clear it with None.

    TenantMiddleware sets it per request; code without a request (webhook
    ingestion, Celery tasks) uses `tenant_context` instead.
    """
    _thread_locals.tenant = tenant


def get_current_tenant():
    """Restaurant bound to the current thread, or None."""
    return getattr(_thread_locals, 'tenant', None)


@contextmanager
def tenant_context(tenant):
    """
    Bind `tenant` for the duration of the block, restoring whatever was
    bound before, even when the block raises.

        with tenant_context(restaurant):
            Ingredient.objects.filter(unit='kg')
    """
    previous = get_current_tenant()
    set_current_tenant(tenant)
    try:
        yield tenant
    finally:
        set_current_tenant(previous)


class TenantManager(models.Manager):
    """
    Default manager of every restaurant-owned model.

    FAILS CLOSED: without a bound restaurant the queryset is empty, so a
    missing X-Tenant header can never expose another restaurant's stock,
    recipes or sales. Services that already hold the restaurant use the
    model's unfiltered `all_objects` manager with an explicit tenant filter:

        class Ingredient(models.Model):
            tenant = models.ForeignKey('tenant.Tenant', on_delete=models.CASCADE)

            objects = TenantManager()
            all_objects = models.Manager()
    """

    def get_queryset(self):
        tenant = get_current_tenant()
        if tenant:
            return super().get_queryset().filter(tenant=tenant)
        return super().get_queryset().none()

    def for_tenant(self, tenant):
        """Rows of `tenant` regardless of the bound restaurant."""
        return super().get_queryset().filter(tenant=tenant)
