"""
Unit tests for EntitlementResolver.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from core.domain.value_objects import NotificationPriority
from licenses.domain.resolver import (
    FEATURE_NOT_LICENSED,
    LICENSE_EXPIRED,
    LICENSE_INACTIVE,
    NO_LICENSE,
    PAYMENT_INVALID,
)


@pytest.fixture
def resolver(container):
    return container.resolver


class TestAccess:
    """Tests for feature and bundle access decisions."""

    @pytest.mark.asyncio
    async def test_no_license_denies_everything(self, resolver, catalog):
        """Test an organization without a license has no access at all."""
        for feature in catalog.features:
            assert await resolver.has_access("nobody", feature.id) is False

        status = await resolver.access_status("nobody", "advanced_sso")
        assert status.reason == NO_LICENSE
        assert status.expires_at is None

    @pytest.mark.asyncio
    async def test_direct_feature(self, resolver, store_license):
        license = await store_license(features=("advanced_sso",))

        status = await resolver.access_status("org1", "advanced_sso")

        assert status.has_access is True
        assert status.is_active is True
        assert status.payment_valid is True
        assert status.expires_at == license.expires_at

    @pytest.mark.asyncio
    async def test_bundle_member_and_free_features(self, resolver, store_license):
        """Test bundle members and free-tier features are granted."""
        await store_license(features=(), bundles=("security",))

        assert await resolver.has_access("org1", "advanced_policy") is True
        assert await resolver.has_access("org1", "basic_auth") is True
        assert await resolver.has_access("org1", "multi_tenant") is False

    @pytest.mark.asyncio
    async def test_unlicensed_feature(self, resolver, store_license):
        await store_license(features=("advanced_sso",))

        status = await resolver.access_status("org1", "api_access")

        assert status.has_access is False
        assert status.reason == FEATURE_NOT_LICENSED

    @pytest.mark.asyncio
    async def test_expired_license_in_grace_period(self, resolver, store_license, clock):
        """Test an expired license denies access and reports grace period."""
        await store_license(days=1)
        clock.advance(days=1, hours=1)

        status = await resolver.access_status("org1", "advanced_sso")

        assert status.has_access is False
        assert status.in_grace_period is True
        assert status.reason == LICENSE_EXPIRED

    @pytest.mark.asyncio
    async def test_canceled_license(self, resolver, container, make_license):
        await container.license_repository.save(make_license().cancel())

        status = await resolver.access_status("org1", "advanced_sso")

        assert status.has_access is False
        assert status.is_active is False
        assert status.in_grace_period is False
        assert status.reason == LICENSE_INACTIVE

    @pytest.mark.asyncio
    async def test_payment_mismatch_denies(self, resolver, store_license):
        """Test a license whose amount does not match the price is denied."""
        await store_license(features=("advanced_sso",), amount=Decimal("5.00"))

        status = await resolver.access_status("org1", "advanced_sso")

        assert status.has_access is False
        assert status.payment_valid is False
        assert status.reason == PAYMENT_INVALID

    @pytest.mark.asyncio
    async def test_usage_tracked_only_when_granted(self, resolver, container, store_license):
        await store_license(features=("advanced_sso",))

        await resolver.has_access("org1", "advanced_sso")
        await resolver.has_access("org1", "advanced_sso")
        await resolver.has_access("org1", "api_access")

        stats = container.tracker.stats("org1")
        assert stats["advanced_sso"].usage_count == 2
        assert "api_access" not in stats

    @pytest.mark.asyncio
    async def test_access_status_does_not_track(self, resolver, container, store_license):
        await store_license()

        await resolver.access_status("org1", "advanced_sso")

        assert container.tracker.stats("org1") == {}

    @pytest.mark.asyncio
    async def test_bundle_access(self, resolver, store_license, clock):
        """Test bundle access needs a listed bundle on a valid license."""
        await store_license(features=("api_access",), bundles=("security",), days=1)

        assert await resolver.has_bundle_access("org1", "security") is True
        assert await resolver.has_bundle_access("org1", "compliance") is False

        clock.advance(days=2)
        assert await resolver.has_bundle_access("org1", "security") is False

    @pytest.mark.asyncio
    async def test_feature_access_map(self, resolver, store_license, clock):
        license = await store_license(features=("advanced_sso",))

        access = resolver.feature_access_map(license, clock())

        assert access == {
            "advanced_sso": True,
            "basic_auth": True,
            "basic_reporting": True,
            "basic_roles": True,
        }


class TestRenewalStatus:
    """Tests for renewal status and notifications."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "days_left,priority,needs_renewal",
        [
            (-1, NotificationPriority.CRITICAL, True),
            (5, NotificationPriority.HIGH, True),
            (10, NotificationPriority.MEDIUM, True),
            (25, NotificationPriority.LOW, True),
            (60, NotificationPriority.NONE, False),
        ],
    )
    async def test_priority_tiers(
        self, resolver, store_license, clock, days_left, priority, needs_renewal
    ):
        """Test renewal priority and need per days until expiry."""
        if days_left < 0:
            await store_license(days=1)
            clock.advance(days=1, hours=1)
        else:
            await store_license(days=days_left)

        status = await resolver.get_renewal_status("org1")

        assert status.days_until_expiry == days_left
        assert status.priority == priority
        assert status.needs_renewal is needs_renewal
        assert status.renewal_available is needs_renewal
        assert status.in_grace_period is (days_left < 0)
        assert status.payment_required is (days_left < 0)

    @pytest.mark.asyncio
    async def test_no_license(self, resolver):
        status = await resolver.get_renewal_status("nobody")

        assert status.needs_renewal is True
        assert status.payment_required is True
        assert status.priority == NotificationPriority.CRITICAL
        assert status.days_until_expiry is None

    @pytest.mark.asyncio
    async def test_messages(self, resolver, store_license):
        await store_license(days=5)

        status = await resolver.get_renewal_status("org1")

        assert status.message == "License expires in 5 days. Please renew soon."

    @pytest.mark.asyncio
    async def test_notifications_sorted_by_urgency(
        self, resolver, container, store_license, make_license, clock
    ):
        """Test notifications skip far and canceled licenses, most urgent first."""
        await store_license(organization_id="low", days=25)
        await store_license(organization_id="high", days=3)
        await store_license(organization_id="far", days=90)
        await container.license_repository.save(
            make_license(organization_id="canceled", days=2).cancel()
        )
        await store_license(organization_id="expired", days=1)
        clock.advance(days=1, hours=1)

        notifications = await resolver.get_renewal_notifications()

        assert [n.organization_id for n in notifications] == ["expired", "high", "low"]
        assert notifications[0].priority == NotificationPriority.CRITICAL
        assert notifications[0].message == "License has expired. Renewal required immediately."
