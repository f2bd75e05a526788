"""
URL configuration for core_backend project.
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    """Simple health check endpoint that doesn't require authentication"""
    return JsonResponse({"status": "ok", "message": "Backend is running"})


urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("admin/", admin.site.urls),
    path("api/cogs/", include("cogs.urls")),
    path("api/inventory/", include("inventory.urls")),
    path("api/integrations/", include("integrations.urls")),
    path("api/reports/", include("reports.urls")),
]
