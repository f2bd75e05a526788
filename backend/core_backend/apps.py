from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    def ready(self):
        """
        Warn at startup when the point-of-sale secret is missing,
        since every webhook delivery would otherwise be rejected with 401.
        """
        from django.conf import settings

        if not getattr(settings, "CASSA_IN_CLOUD_WEBHOOK_SECRET", ""):
            logger.warning(
                "CASSA_IN_CLOUD_WEBHOOK_SECRET is not configured; "
                "sales webhooks will be rejected"
            )
