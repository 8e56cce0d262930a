import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class MarketplaceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "marketplace"

    def ready(self):
        """
        Initialize marketplace observability.
        """
        # Initialize OpenTelemetry Tracing
        try:
            from django.conf import settings

            from marketplace.infra.observability.tracing import setup_tracing

            # Get config from Django settings
            tracing = getattr(settings, "TRACING", {})

            setup_tracing(
                service_name=tracing.get("SERVICE_NAME", "marketplace-listing"),
                otlp_endpoint=tracing.get("OTLP_ENDPOINT"),
                console=tracing.get("CONSOLE", False),
                enable=tracing.get("ENABLED", False),
            )
        except Exception as e:
            logger.warning(f"Failed to initialize OpenTelemetry tracing: {e}")
