"""
Permissions shared by the back-office APIs.
"""
from rest_framework import permissions


class HasTenantContext(permissions.BasePermission):
    """
    Allows access only to authenticated users on requests bound to a restaurant.

    Cost and stock data are always scoped to one tenant; a request without
    tenant context would see empty querysets.
    """
    message = "A restaurant must be selected (X-Tenant header) to access this resource."

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return getattr(request, 'tenant', None) is not None


class CanManageStock(HasTenantContext):
    """Stock-changing operations are limited to staff accounts."""
    message = "You do not have permission to change stock."

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.is_staff
