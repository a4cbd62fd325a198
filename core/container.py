"""
Service container.

The composition root: builds every repository, domain service and handler
once and wires them together. Views and commands obtain components from
the process container; tests build their own with in-memory adapters.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from django.conf import settings
from django.utils import timezone

from activations.application.handlers.activate_features_handler import (
    ActivateFeaturesHandler,
    DeactivateFeaturesHandler,
)
from activations.application.handlers.extend_activations_handler import (
    ExtendActivationsOnRenewal,
)
from activations.application.handlers.get_activation_status_handler import (
    GetBundleStatusHandler,
    GetFeatureAccessHandler,
    GetFeatureStatusHandler,
)
from activations.domain.services import FeatureActivationService
from activations.ports.activation_repository import ActivationRepository
from catalog.domain.catalog import PricingCatalog
from catalog.infrastructure.static_catalog import build_default_catalog
from core.domain.events import EventBus
from core.infrastructure.event_handlers import register_event_handlers
from core.infrastructure.events import InMemoryEventBus
from core.infrastructure.locks import OrganizationLocks
from licenses.application.handlers.activate_license_handler import ActivateLicenseHandler
from licenses.application.handlers.expire_licenses_handler import ExpireOverdueLicensesHandler
from licenses.application.handlers.get_license_status_handler import (
    GetLicenseStatusHandler,
    GetRenewalStatusHandler,
)
from licenses.application.handlers.renew_license_handler import (
    BulkRenewLicensesHandler,
    RenewLicenseHandler,
)
from licenses.domain.pricing import PaymentValidator
from licenses.domain.renewal import RenewalManager
from licenses.domain.resolver import EntitlementResolver
from licenses.ports.license_repository import LicenseRepository
from payments.application.handlers.initiate_payment_handler import InitiatePaymentHandler
from payments.application.handlers.payment_webhook_handler import PaymentWebhookHandler
from payments.application.services.notification_service import NotificationService
from payments.ports.notification_sink import NotificationSink
from payments.ports.payment_provider import PaymentProvider
from reports.domain.scheduler import ReportScheduler
from reports.ports.report_storage import ReportStorage, RetentionPolicyRepository
from usage.application.services.usage_report_service import ReportExporter, UsageReportGenerator
from usage.domain.tracker import UsageTracker

logger = logging.getLogger(__name__)


def entitlement_settings() -> Dict[str, Any]:
    """Return the ENTITLEMENTS settings dict."""
    return getattr(settings, "ENTITLEMENTS", {})


def build_payment_provider(config: Dict[str, Any]) -> PaymentProvider:
    """
    Build the payment provider named in settings.

    Raises:
        ValueError: If the backend is unknown
    """
    backend = config.get("BACKEND", "mollie")
    if backend == "mollie":
        from payments.infrastructure.mollie_provider import DEFAULT_BASE_URL, MolliePaymentProvider

        return MolliePaymentProvider(
            api_key=config.get("API_KEY", ""),
            redirect_url=config.get("REDIRECT_URL", ""),
            webhook_url=config.get("WEBHOOK_URL", ""),
            base_url=config.get("BASE_URL") or DEFAULT_BASE_URL,
            timeout=float(config.get("TIMEOUT", 10)),
        )
    if backend == "memory":
        from payments.infrastructure.in_memory_provider import InMemoryPaymentProvider

        return InMemoryPaymentProvider()
    raise ValueError(f"Unknown payment provider backend: {backend}")


def build_notification_sink(name: str, from_email: str) -> NotificationSink:
    """
    Build the notification sink named in settings.

    Raises:
        ValueError: If the sink is unknown
    """
    from payments.infrastructure.notification_sinks import (
        CeleryNotificationSink,
        EmailNotificationSink,
    )

    if name == "email":
        return EmailNotificationSink(from_email)
    if name == "celery":
        return CeleryNotificationSink()
    raise ValueError(f"Unknown notification sink: {name}")


class ServiceContainer:
    """
    Wires the entitlement engine together.

    Every collaborator can be overridden; the defaults are the Django
    adapters configured by settings.
    """

    def __init__(
        self,
        license_repository: Optional[LicenseRepository] = None,
        activation_repository: Optional[ActivationRepository] = None,
        policy_repository: Optional[RetentionPolicyRepository] = None,
        report_storage: Optional[ReportStorage] = None,
        payment_provider: Optional[PaymentProvider] = None,
        notification_sink: Optional[NotificationSink] = None,
        catalog: Optional[PricingCatalog] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = timezone.now,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.config = config if config is not None else entitlement_settings()
        self.clock = clock
        self.event_bus = event_bus or InMemoryEventBus()
        self.locks = OrganizationLocks()
        self.catalog = catalog or build_default_catalog()
        self.validator = PaymentValidator(self.catalog)
        self.tracker = UsageTracker([f.id for f in self.catalog.features], clock=clock)

        if license_repository is None:
            from licenses.infrastructure.repositories.django_license_repository import (
                DjangoLicenseRepository,
            )

            license_repository = DjangoLicenseRepository()
        if activation_repository is None:
            from activations.infrastructure.repositories.django_activation_repository import (
                DjangoActivationRepository,
            )

            activation_repository = DjangoActivationRepository()
        if policy_repository is None:
            from reports.infrastructure.repositories.django_retention_policy_repository import (
                DjangoRetentionPolicyRepository,
            )

            policy_repository = DjangoRetentionPolicyRepository()
        if report_storage is None:
            from reports.infrastructure.filesystem_storage import FileSystemReportStorage

            report_storage = FileSystemReportStorage(
                self.config.get("REPORTS_DIR", "reports"), clock=clock
            )

        self.license_repository = license_repository
        self.activation_repository = activation_repository
        self.policy_repository = policy_repository
        self.report_storage = report_storage
        self._payment_provider = payment_provider
        self._notification_sink = notification_sink

        # Domain services
        self.resolver = EntitlementResolver(
            license_repository, self.catalog, self.validator, self.tracker, clock
        )
        self.activation_service = FeatureActivationService(
            activation_repository,
            license_repository,
            self.resolver,
            self.catalog,
            self.locks,
            self.event_bus,
            clock,
        )
        self.renewal_manager = RenewalManager(
            license_repository, self.validator, self.locks, self.event_bus, clock
        )

        # License handlers
        self.activate_license_handler = ActivateLicenseHandler(
            license_repository,
            self.validator,
            self.activation_service,
            self.locks,
            self.event_bus,
            clock,
        )
        self.renew_license_handler = RenewLicenseHandler(self.renewal_manager)
        self.bulk_renew_handler = BulkRenewLicensesHandler(self.renewal_manager)
        self.license_status_handler = GetLicenseStatusHandler(self.resolver)
        self.renewal_status_handler = GetRenewalStatusHandler(self.resolver)
        self.expire_licenses_handler = ExpireOverdueLicensesHandler(
            license_repository, self.locks, self.event_bus, clock
        )

        # Activation handlers
        self.activate_features_handler = ActivateFeaturesHandler(self.activation_service)
        self.deactivate_features_handler = DeactivateFeaturesHandler(self.activation_service)
        self.feature_status_handler = GetFeatureStatusHandler(self.activation_service)
        self.feature_access_handler = GetFeatureAccessHandler(self.resolver)
        self.bundle_status_handler = GetBundleStatusHandler(self.activation_service)

        # Reports
        self.report_generator = UsageReportGenerator(self.resolver, self.tracker, clock)
        self.report_exporter = ReportExporter(self.report_generator)
        self.report_scheduler = ReportScheduler(
            self.report_exporter,
            report_storage,
            policy_repository,
            self.event_bus,
            cleanup_interval=timedelta(
                seconds=int(self.config.get("REPORT_CLEANUP_INTERVAL_SECONDS", 86400))
            ),
            clock=clock,
        )

        register_event_handlers(
            self.event_bus,
            ExtendActivationsOnRenewal(self.activation_service, license_repository),
        )

    @property
    def payment_provider(self) -> PaymentProvider:
        if self._payment_provider is None:
            self._payment_provider = build_payment_provider(self.config.get("PAYMENT_PROVIDER", {}))
        return self._payment_provider

    @property
    def notification_sink(self) -> NotificationSink:
        if self._notification_sink is None:
            self._notification_sink = build_notification_sink(
                self.config.get("NOTIFICATION_SINK", "email"),
                self.config.get("NOTIFICATION_FROM_EMAIL", "billing@localhost"),
            )
        return self._notification_sink

    @property
    def notifications(self) -> NotificationService:
        return NotificationService(
            self.notification_sink, self.config.get("BILLING_CONTACT_EMAIL")
        )

    @property
    def initiate_payment_handler(self) -> InitiatePaymentHandler:
        return InitiatePaymentHandler(
            self.payment_provider,
            self.validator,
            self.license_repository,
            self.config.get("BILLING_CONTACT_EMAIL"),
        )

    @property
    def payment_webhook_handler(self) -> PaymentWebhookHandler:
        return PaymentWebhookHandler(
            self.payment_provider,
            self.license_repository,
            self.activate_license_handler,
            self.renewal_manager,
            self.activation_service,
            self.locks,
            self.notifications,
            self.event_bus,
        )


_container: Optional[ServiceContainer] = None
_container_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """Return the process container, building it on first use."""
    global _container
    with _container_lock:
        if _container is None:
            _container = ServiceContainer()
            logger.info("Service container built")
        return _container


def set_container(container: Optional[ServiceContainer]) -> None:
    """Replace the process container; None forces a rebuild on next use."""
    global _container
    with _container_lock:
        _container = container
