"""
Unit tests for license application handlers.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from core.domain.events import EventHandler
from core.domain.exceptions import (
    InsufficientPaymentError,
    InvalidAmountError,
    InvalidBundleError,
    InvalidCurrencyError,
    InvalidDurationError,
    InvalidFeatureError,
    InvalidOrganizationIDError,
    InvalidPaymentIDError,
    LicenseNotFoundError,
    MissingFeatureDependencyError,
    NoFeaturesOrBundlesError,
    PaymentAlreadyAppliedError,
)
from core.domain.value_objects import LicenseStatus
from licenses.application.commands.activate_license import ActivateLicenseCommand
from licenses.application.commands.renew_license import (
    BulkRenewLicensesCommand,
    RenewLicenseCommand,
)
from licenses.application.queries.get_license_status import (
    GetLicenseStatusQuery,
    GetRenewalStatusQuery,
)
from licenses.domain.events import LicenseActivated, LicenseExpired

MONTH = timedelta(days=30)


class RecordingHandler(EventHandler):
    def __init__(self):
        self.events = []

    async def handle(self, event):
        self.events.append(event)


def activate_command(**overrides):
    data = {
        "organization_id": "org1",
        "payment_id": "tr_1",
        "amount": Decimal("9.99"),
        "currency": "USD",
        "duration": MONTH,
        "features": ["advanced_sso"],
        "bundles": [],
    }
    data.update(overrides)
    return ActivateLicenseCommand(**data)


class TestActivateLicenseHandler:
    """Tests for ActivateLicenseHandler."""

    @pytest.mark.asyncio
    async def test_activate_license(self, container, clock):
        """Test a paid license is stored and its features activated."""
        recorder = RecordingHandler()
        container.event_bus.subscribe(LicenseActivated, recorder)

        result = await container.activate_license_handler.handle(activate_command())

        assert result.organization_id == "org1"
        assert result.status == "active"
        assert result.expires_at == clock() + MONTH
        assert result.amount == Decimal("9.99")
        activation = await container.activation_repository.find("org1", "advanced_sso")
        assert activation.active is True
        assert activation.expires_at == result.expires_at
        assert recorder.events[0].license_id == str(result.id)

    @pytest.mark.asyncio
    async def test_bundle_fans_out_to_members(self, container):
        """Test a bundle activates one row per member at the bundle price."""
        await container.activate_license_handler.handle(
            activate_command(features=[], bundles=["security"], amount=Decimal("24.99"))
        )

        rows = await container.activation_repository.list_by_organization("org1")
        assert [row.feature_id for row in rows] == ["advanced_policy", "advanced_sso"]
        assert all(row.amount == Decimal("24.99") for row in rows)
        assert all(row.source == "bundle:security" for row in rows)

    @pytest.mark.asyncio
    async def test_replaces_previous_license(self, container):
        first = await container.activate_license_handler.handle(activate_command())
        second = await container.activate_license_handler.handle(
            activate_command(payment_id="tr_2", features=["api_access"], amount=Decimal("14.99"))
        )

        current = await container.license_repository.find_by_organization("org1")
        assert current.id == second.id
        assert current.id != first.id

    @pytest.mark.asyncio
    async def test_new_license_carries_current_activations(self, container, clock):
        """Test activations still on from the old license follow the new one."""
        await container.activate_license_handler.handle(
            activate_command(payment_id="tr_a", duration=timedelta(days=30))
        )
        clock.advance(days=10)
        second = await container.activate_license_handler.handle(
            activate_command(payment_id="tr_b", duration=timedelta(days=60))
        )
        clock.advance(days=25)

        status = await container.activation_service.feature_status("org1", "advanced_sso")

        assert status.active is True
        activation = await container.activation_repository.find("org1", "advanced_sso")
        assert activation.payment_id == "tr_b"
        assert activation.expires_at == second.expires_at

    @pytest.mark.asyncio
    async def test_same_payment_applied_once(self, container):
        """Test a payment that already funds the current license is refused."""
        first = await container.activate_license_handler.handle(activate_command())

        with pytest.raises(PaymentAlreadyAppliedError) as exc_info:
            await container.activate_license_handler.handle(activate_command())

        assert exc_info.value.license_id == str(first.id)
        assert len(await container.license_repository.history("org1")) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides,error",
        [
            ({"organization_id": ""}, InvalidOrganizationIDError),
            ({"payment_id": " "}, InvalidPaymentIDError),
            ({"features": [], "bundles": []}, NoFeaturesOrBundlesError),
            ({"duration": timedelta(0)}, InvalidDurationError),
            ({"amount": Decimal("0")}, InvalidAmountError),
            ({"currency": "XYZ"}, InvalidCurrencyError),
            ({"features": ["teleportation"]}, InvalidFeatureError),
            ({"features": [], "bundles": ["everything"]}, InvalidBundleError),
            ({"features": ["multi_tenant"], "amount": Decimal("49.99")}, MissingFeatureDependencyError),
            ({"amount": Decimal("5.00")}, InsufficientPaymentError),
            ({"amount": Decimal("25.00")}, InvalidAmountError),
        ],
    )
    async def test_rejects_invalid_commands(self, container, overrides, error):
        """Test nothing is stored when the command is invalid."""
        with pytest.raises(error):
            await container.activate_license_handler.handle(activate_command(**overrides))

        assert await container.license_repository.list_current() == []
        assert await container.activation_repository.list_by_organization("org1") == []

    @pytest.mark.asyncio
    async def test_dependencies_covered_by_bundle(self, container):
        """Test management bundle satisfies multi_tenant dependencies."""
        result = await container.activate_license_handler.handle(
            activate_command(features=[], bundles=["management"], amount=Decimal("79.99"))
        )

        assert result.bundles == ["management"]


class TestRenewalHandlers:
    """Tests for RenewLicenseHandler and BulkRenewLicensesHandler."""

    @pytest.mark.asyncio
    async def test_renew(self, container, store_license):
        await store_license()

        result = await container.renew_license_handler.handle(
            RenewLicenseCommand("org1", "tr_renew", Decimal("9.99"), "USD", MONTH)
        )

        assert result.payment_id == "tr_renew"

    @pytest.mark.asyncio
    async def test_bulk_renew_reports_failures(self, container, store_license):
        await store_license(organization_id="org1")

        result = await container.bulk_renew_handler.handle(
            BulkRenewLicensesCommand(["org1", "ghost"], "tr_bulk", Decimal("9.99"), "USD", MONTH)
        )

        assert [lic.organization_id for lic in result.succeeded] == ["org1"]
        assert len(result.failed) == 1
        assert result.failed[0].organization_id == "ghost"
        assert result.failed[0].code == "LICENSE_NOT_FOUND"


class TestStatusHandlers:
    """Tests for license and renewal status handlers."""

    @pytest.mark.asyncio
    async def test_license_status(self, container, store_license):
        await store_license(features=("advanced_sso",), bundles=("compliance",))

        status = await container.license_status_handler.handle(GetLicenseStatusQuery("org1"))

        assert status.is_active is True
        assert status.payment_status == "valid"
        assert status.active_features == ["advanced_sso"]
        assert status.active_bundles == ["compliance"]
        assert status.pricing.total_amount == Decimal("49.98")
        assert status.feature_access["advanced_audit"] is True

    @pytest.mark.asyncio
    async def test_license_status_invalid_payment(self, container, store_license):
        await store_license(amount=Decimal("1.00"))

        status = await container.license_status_handler.handle(GetLicenseStatusQuery("org1"))

        assert status.payment_status == "invalid"
        assert set(status.feature_access.values()) == {False}

    @pytest.mark.asyncio
    async def test_license_status_not_found(self, container):
        with pytest.raises(LicenseNotFoundError):
            await container.license_status_handler.handle(GetLicenseStatusQuery("nobody"))

    @pytest.mark.asyncio
    async def test_renewal_status(self, container, store_license):
        await store_license(days=10)

        status = await container.renewal_status_handler.handle(GetRenewalStatusQuery("org1"))

        assert status.priority == "medium"
        assert status.days_until_expiry == 10


class TestExpireOverdueLicensesHandler:
    """Tests for ExpireOverdueLicensesHandler."""

    @pytest.mark.asyncio
    async def test_expires_overdue_licenses(self, container, store_license, clock):
        recorder = RecordingHandler()
        container.event_bus.subscribe(LicenseExpired, recorder)
        await store_license(organization_id="old", days=1)
        await store_license(organization_id="fresh", days=30)
        clock.advance(days=2)

        expired = await container.expire_licenses_handler.handle()

        assert [lic.organization_id for lic in expired] == ["old"]
        old = await container.license_repository.find_by_organization("old")
        assert old.status == LicenseStatus.EXPIRED
        assert len(recorder.events) == 1

    @pytest.mark.asyncio
    async def test_dry_run(self, container, store_license, clock):
        await store_license(days=1)
        clock.advance(days=2)

        found = await container.expire_licenses_handler.handle(dry_run=True)

        assert len(found) == 1
        current = await container.license_repository.find_by_organization("org1")
        assert current.status == LicenseStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_canceled_licenses_untouched(self, container, make_license, clock):
        await container.license_repository.save(make_license(days=1).cancel())
        clock.advance(days=2)

        assert await container.expire_licenses_handler.handle() == []


class TestEndToEnd:
    """License lifecycle for one organization."""

    @pytest.mark.asyncio
    async def test_org1_advanced_sso_usd(self, container, clock):
        """
        org1 licenses advanced_sso at USD 9.99, renews for 30 days, keeps
        access until expiry and enters the grace period afterwards.
        """
        await container.activate_license_handler.handle(activate_command())
        clock.advance(days=20)

        await container.renew_license_handler.handle(
            RenewLicenseCommand("org1", "tr_renew", Decimal("9.99"), "USD", MONTH)
        )
        status = await container.license_status_handler.handle(GetLicenseStatusQuery("org1"))
        assert status.expires_at == clock() + MONTH
        assert await container.resolver.has_access("org1", "advanced_sso") is True

        clock.advance(days=30, seconds=1)

        assert await container.resolver.has_access("org1", "advanced_sso") is False
        renewal = await container.renewal_status_handler.handle(GetRenewalStatusQuery("org1"))
        assert renewal.in_grace_period is True
        assert renewal.needs_renewal is True
