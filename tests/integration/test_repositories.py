"""
Integration tests for repository implementations.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from activations.domain.activation import FeatureActivation
from activations.infrastructure.repositories.django_activation_repository import (
    DjangoActivationRepository,
)
from core.domain.value_objects import LicenseStatus
from licenses.domain.license import License
from licenses.infrastructure.repositories.django_license_repository import (
    DjangoLicenseRepository,
)
from reports.domain.retention import RetentionPolicy
from reports.infrastructure.repositories.django_retention_policy_repository import (
    DjangoRetentionPolicyRepository,
)


def new_license(organization_id="org1", payment_id="tr_1", issued_at=None, days=30):
    return License.create(
        organization_id=organization_id,
        features=("advanced_sso",),
        bundles=("compliance",),
        payment_id=payment_id,
        currency="USD",
        amount=Decimal("49.98"),
        duration=timedelta(days=days),
        now=issued_at or timezone.now(),
    )


def new_activation(feature_id="advanced_sso", organization_id="org1"):
    now = timezone.now()
    return FeatureActivation.create(
        organization_id=organization_id,
        feature_id=feature_id,
        payment_id="tr_1",
        currency="USD",
        amount=Decimal("24.99"),
        source="bundle:security",
        now=now,
        expires_at=now + timedelta(days=30),
    )


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestDjangoLicenseRepository:
    """Integration tests for DjangoLicenseRepository."""

    @pytest.mark.asyncio
    async def test_save_and_find(self):
        """Test saving and finding the current license."""
        repo = DjangoLicenseRepository()
        license = new_license()

        await repo.save(license)

        found = await repo.find_by_organization("org1")
        assert found.id == license.id
        assert found.features == frozenset({"advanced_sso"})
        assert found.bundles == frozenset({"compliance"})
        assert found.amount == Decimal("49.98")
        assert found.status == LicenseStatus.ACTIVE
        assert await repo.find_by_organization("org2") is None

    @pytest.mark.asyncio
    async def test_new_license_supersedes_previous(self):
        """Test one current license per organization with full history."""
        repo = DjangoLicenseRepository()
        first = new_license(issued_at=timezone.now() - timedelta(days=5))
        second = new_license(payment_id="tr_2")

        await repo.save(first)
        await repo.save(second)

        assert (await repo.find_by_organization("org1")).id == second.id
        assert [lic.id for lic in await repo.history("org1")] == [second.id, first.id]
        assert [lic.id for lic in await repo.list_current()] == [second.id]

    @pytest.mark.asyncio
    async def test_update_in_place(self):
        repo = DjangoLicenseRepository()
        license = await repo.save(new_license())

        await repo.save(license.cancel())

        found = await repo.find_by_organization("org1")
        assert found.status == LicenseStatus.CANCELED
        assert len(await repo.history("org1")) == 1

    @pytest.mark.asyncio
    async def test_find_overdue(self):
        repo = DjangoLicenseRepository()
        stale = new_license("old", issued_at=timezone.now() - timedelta(days=40))
        await repo.save(stale)
        await repo.save(new_license("fresh"))
        await repo.save(new_license("gone", issued_at=timezone.now() - timedelta(days=40)).cancel())

        overdue = await repo.find_overdue(timezone.now())

        assert [lic.organization_id for lic in overdue] == ["old"]


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestDjangoActivationRepository:
    """Integration tests for DjangoActivationRepository."""

    @pytest.mark.asyncio
    async def test_save_and_find(self):
        repo = DjangoActivationRepository()
        activation = new_activation()

        await repo.save(activation)

        found = await repo.find("org1", "advanced_sso")
        assert found.id == activation.id
        assert found.active is True
        assert found.source == "bundle:security"
        assert await repo.find("org1", "api_access") is None

    @pytest.mark.asyncio
    async def test_one_row_per_feature(self):
        """Test saving again updates the existing row."""
        repo = DjangoActivationRepository()
        activation = await repo.save(new_activation())

        await repo.save(activation.deactivate(timezone.now()))

        rows = await repo.list_by_organization("org1")
        assert len(rows) == 1
        assert rows[0].active is False
        assert await repo.list_active("org1") == []

    @pytest.mark.asyncio
    async def test_listing_sorted_by_feature(self):
        repo = DjangoActivationRepository()
        await repo.save(new_activation("advanced_sso"))
        await repo.save(new_activation("advanced_policy"))
        await repo.save(new_activation("api_access", organization_id="org2"))

        rows = await repo.list_active("org1")

        assert [row.feature_id for row in rows] == ["advanced_policy", "advanced_sso"]


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestDjangoRetentionPolicyRepository:
    """Integration tests for DjangoRetentionPolicyRepository."""

    @pytest.mark.asyncio
    async def test_save_find_delete(self):
        repo = DjangoRetentionPolicyRepository()
        policy = RetentionPolicy(timedelta(days=2), timedelta(days=14), timedelta(days=90))

        await repo.save("org1", policy, updated_by="admin")
        assert await repo.find("org1") == policy

        replacement = RetentionPolicy(timedelta(days=3), timedelta(days=14), timedelta(days=90))
        await repo.save("org1", replacement)
        assert await repo.find("org1") == replacement

        assert await repo.delete("org1") is True
        assert await repo.delete("org1") is False
        assert await repo.find("org1") is None
