from django.conf import settings
from django.http import JsonResponse

from .managers import tenant_context
from .models import Tenant


class TenantNotFoundError(Exception):
    """Raised when the X-Tenant header names an unknown restaurant."""
    pass


class TenantMiddleware:
    """
    Binds the restaurant of each back-office request to request.tenant and
    to the thread-local context read by TenantManager.

    Resolution order:
    1. X-Tenant header carrying the restaurant slug
    2. DEFAULT_TENANT_SLUG setting (single-restaurant deployments)
    3. No restaurant: request.tenant is None and tenant-filtered managers
       return nothing. The sales webhook resolves its restaurant from the
       bill's sales point instead.

    Django admin always runs without a restaurant.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path.startswith('/admin/'):
            request.tenant = None
            with tenant_context(None):
                return self.get_response(request)

        try:
            tenant = self.get_tenant_from_request(request)
        except TenantNotFoundError as e:
            return JsonResponse({'error': str(e), 'code': 'TENANT_NOT_FOUND'}, status=400)

        request.tenant = tenant
        if tenant is not None and not tenant.is_active:
            return JsonResponse(
                {'error': 'Tenant account is inactive', 'code': 'TENANT_INACTIVE'},
                status=403,
            )

        with tenant_context(tenant):
            return self.get_response(request)

    def get_tenant_from_request(self, request):
        slug = request.META.get(getattr(settings, 'TENANT_HEADER', 'HTTP_X_TENANT'))
        if slug:
            try:
                return Tenant.objects.get(slug=slug)
            except Tenant.DoesNotExist:
                raise TenantNotFoundError(f"Tenant '{slug}' not found")

        default_slug = getattr(settings, 'DEFAULT_TENANT_SLUG', '')
        if default_slug:
            return Tenant.objects.filter(slug=default_slug).first()

        return None
