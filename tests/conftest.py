"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest
from django.core.cache import cache

from activations.infrastructure.repositories.in_memory_activation_repository import (
    InMemoryActivationRepository,
)
from catalog.infrastructure.static_catalog import build_default_catalog
from core.container import ServiceContainer, set_container
from licenses.domain.license import License
from licenses.domain.pricing import PaymentValidator
from licenses.infrastructure.repositories.in_memory_license_repository import (
    InMemoryLicenseRepository,
)
from payments.infrastructure.in_memory_provider import InMemoryPaymentProvider
from payments.ports.notification_sink import NotificationSink
from reports.infrastructure.filesystem_storage import FileSystemReportStorage
from reports.infrastructure.repositories.in_memory_retention_policy_repository import (
    InMemoryRetentionPolicyRepository,
)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

TEST_CONFIG = {
    "REPORT_CLEANUP_INTERVAL_SECONDS": 86400,
    "REPORT_SCHEDULE": {"PERIOD": "monthly", "FORMAT": "json", "FREQUENCY_HOURS": 24},
    "RENEWAL_NOTICE_DAYS": 30,
    "BILLING_CONTACT_EMAIL": "billing@example.com",
}


class FrozenClock:
    """Clock returning a fixed time until advanced."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingSink(NotificationSink):
    """Notification sink keeping every message; fails on demand."""

    def __init__(self):
        self.messages = []
        self.fail = False

    async def notify(self, recipient: str, subject: str, body: str) -> None:
        if self.fail:
            raise RuntimeError("smtp unavailable")
        self.messages.append((recipient, subject, body))


@pytest.fixture
def clock():
    """Fixture for a frozen clock."""
    return FrozenClock()


@pytest.fixture
def catalog():
    """Fixture for the built-in pricing catalog."""
    return build_default_catalog()


@pytest.fixture
def validator(catalog):
    """Fixture for PaymentValidator."""
    return PaymentValidator(catalog)


@pytest.fixture
def license_repository():
    """Fixture for an in-memory LicenseRepository."""
    return InMemoryLicenseRepository()


@pytest.fixture
def activation_repository():
    """Fixture for an in-memory ActivationRepository."""
    return InMemoryActivationRepository()


@pytest.fixture
def policy_repository():
    """Fixture for an in-memory RetentionPolicyRepository."""
    return InMemoryRetentionPolicyRepository()


@pytest.fixture
def payment_provider():
    """Fixture for the in-memory payment provider."""
    return InMemoryPaymentProvider()


@pytest.fixture
def notification_sink():
    """Fixture for a recording notification sink."""
    return RecordingSink()


@pytest.fixture
def report_storage(tmp_path, clock):
    """Fixture for filesystem report storage below a temp dir."""
    return FileSystemReportStorage(tmp_path / "reports", clock=clock)


@pytest.fixture
def container(
    license_repository,
    activation_repository,
    policy_repository,
    report_storage,
    payment_provider,
    notification_sink,
    catalog,
    clock,
):
    """Fixture for a ServiceContainer wired to in-memory adapters."""
    cache.clear()
    yield ServiceContainer(
        license_repository=license_repository,
        activation_repository=activation_repository,
        policy_repository=policy_repository,
        report_storage=report_storage,
        payment_provider=payment_provider,
        notification_sink=notification_sink,
        catalog=catalog,
        clock=clock,
        config=dict(TEST_CONFIG),
    )
    cache.clear()


@pytest.fixture
def make_license(validator, clock):
    """Fixture building a payment-valid License at the clock's time."""

    def _make(
        organization_id="org1",
        features=("advanced_sso",),
        bundles=(),
        currency="USD",
        amount=None,
        days=30,
        payment_id="tr_seed",
    ):
        if amount is None:
            amount = validator.calculate_pricing(features, bundles, currency).total_amount
        return License.create(
            organization_id=organization_id,
            features=features,
            bundles=bundles,
            payment_id=payment_id,
            currency=currency,
            amount=amount,
            duration=timedelta(days=days),
            now=clock(),
        )

    return _make


@pytest.fixture
def store_license(container, make_license):
    """Fixture saving a License in the container's repository."""

    async def _store(**kwargs):
        return await container.license_repository.save(make_license(**kwargs))

    return _store


@pytest.fixture
def django_container(db, tmp_path):
    """
    Fixture installing a container backed by the Django repositories.

    Views resolve the process container, so it is replaced for the test
    and reset afterwards.
    """
    cache.clear()
    container = ServiceContainer(
        report_storage=FileSystemReportStorage(tmp_path / "reports"),
        payment_provider=InMemoryPaymentProvider(),
        notification_sink=RecordingSink(),
        config=dict(TEST_CONFIG),
    )
    set_container(container)
    yield container
    set_container(None)
    cache.clear()


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()
