"""
Unit tests for License domain entity.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from core.domain.exceptions import InvalidOrganizationIDError
from core.domain.value_objects import LicenseStatus
from licenses.domain.license import License


class TestLicenseEntity:
    """Tests for License domain entity."""

    def test_create_license(self, clock):
        """Test creating a license entity."""
        license = License.create(
            organization_id="org1",
            features=["advanced_sso"],
            bundles=[],
            payment_id="tr_1",
            currency="USD",
            amount=Decimal("9.99"),
            duration=timedelta(days=30),
            now=clock(),
        )

        assert license.organization_id == "org1"
        assert license.features == frozenset({"advanced_sso"})
        assert license.status == LicenseStatus.ACTIVE
        assert license.issued_at == clock()
        assert license.expires_at == clock() + timedelta(days=30)
        assert license.amount == Decimal("9.99")

    def test_requires_features_or_bundles(self, make_license):
        with pytest.raises(ValueError):
            make_license(features=(), bundles=(), amount=Decimal("1.00"))

    def test_requires_positive_duration(self, make_license):
        with pytest.raises(ValueError):
            make_license(days=0)

    def test_rejects_path_like_organization(self, make_license):
        with pytest.raises(InvalidOrganizationIDError):
            make_license(organization_id="x/../../escaped")

    def test_is_valid(self, make_license, clock):
        """Test validity until expiry."""
        license = make_license(days=30)

        assert license.is_valid(clock()) is True
        assert license.is_valid(clock() + timedelta(days=30)) is True
        assert license.is_valid(clock() + timedelta(days=30, seconds=1)) is False

    def test_days_until_expiry_floors(self, make_license, clock):
        """Test one hour past expiry counts as day -1."""
        license = make_license(days=10)

        assert license.days_until_expiry(clock()) == 10
        assert license.days_until_expiry(clock() + timedelta(hours=1)) == 9
        assert license.days_until_expiry(clock() + timedelta(days=10, hours=1)) == -1

    def test_grace_period(self, make_license, clock):
        """Test expired licenses are in grace, canceled ones are not."""
        license = make_license(days=1)
        later = clock() + timedelta(days=2)

        assert license.in_grace_period(clock()) is False
        assert license.in_grace_period(later) is True
        assert license.cancel().in_grace_period(later) is False

    def test_renew_creates_replacement(self, make_license, clock):
        """Test renewal keeps features and starts a new period."""
        license = make_license(features=("advanced_sso", "api_access"), days=5)
        later = clock() + timedelta(days=3)

        renewed = license.renew(
            payment_id="tr_2",
            currency="USD",
            amount=Decimal("24.98"),
            duration=timedelta(days=30),
            now=later,
        )

        assert renewed.id != license.id
        assert renewed.features == license.features
        assert renewed.payment_id == "tr_2"
        assert renewed.issued_at == later
        assert renewed.expires_at == later + timedelta(days=30)
        assert renewed.status == LicenseStatus.ACTIVE

    def test_expire(self, make_license):
        expired = make_license().expire()

        assert expired.status == LicenseStatus.EXPIRED
        assert expired.is_active is False

    def test_cannot_expire_canceled(self, make_license):
        """Test a canceled license stays canceled."""
        with pytest.raises(ValueError):
            make_license().cancel().expire()
