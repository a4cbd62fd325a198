"""
App configuration for Enterprise Entitlement Service.
"""

import logging
import os
import sys

from django.apps import AppConfig

logger = logging.getLogger(__name__)

SKIPPED_COMMANDS = ("migrate", "makemigrations", "collectstatic", "shell", "check")


class EnterpriseEntitlementServiceConfig(AppConfig):
    """App configuration for EnterpriseEntitlementService."""

    name = "EnterpriseEntitlementService"
    verbose_name = "Enterprise Entitlement Service"

    def ready(self):
        """Set up tracing once Django has loaded every app."""
        if len(sys.argv) > 1 and sys.argv[1] in SKIPPED_COMMANDS:
            return
        # Django's autoreloader imports the project twice
        if os.environ.get("RUN_MAIN") == "false":
            return

        from core.instrumentation import setup_opentelemetry

        setup_opentelemetry()
        logger.info("Observability setup complete")
