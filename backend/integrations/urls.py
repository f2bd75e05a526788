from django.urls import path
from .views import CassaInCloudWebhookView

app_name = "integrations"

urlpatterns = [
    path(
        "cassa-in-cloud/webhook/",
        CassaInCloudWebhookView.as_view(),
        name="cassa-in-cloud-webhook",
    ),
]
