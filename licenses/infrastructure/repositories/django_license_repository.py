"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import transaction
from django.utils import timezone

from core.domain.value_objects import LicenseStatus
from licenses.domain.license import License
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseRepository


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Supersedes the previous current row when a new license is saved
    """

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        return License(
            id=model.id,
            organization_id=model.organization_id,
            features=frozenset(model.features),
            bundles=frozenset(model.bundles),
            issued_at=model.issued_at,
            expires_at=model.expires_at,
            status=LicenseStatus(model.status),
            payment_id=model.payment_id,
            currency=model.currency,
            amount=Decimal(model.amount),
        )

    def _to_model(self, license: License) -> LicenseModel:
        """
        Convert domain entity to Django model.

        Args:
            license: License domain entity

        Returns:
            Django License model (unsaved changes applied)
        """
        fields = {
            "organization_id": license.organization_id,
            "features": sorted(license.features),
            "bundles": sorted(license.bundles),
            "issued_at": license.issued_at,
            "expires_at": license.expires_at,
            "status": license.status.value,
            "payment_id": license.payment_id,
            "currency": license.currency,
            "amount": license.amount,
        }
        model, created = LicenseModel.objects.get_or_create(id=license.id, defaults=fields)
        if not created:
            for name, value in fields.items():
                setattr(model, name, value)
        return model

    @sync_to_async
    def save(self, license: License) -> License:
        """
        Save a license entity as the organization's current license.

        Args:
            license: License entity to save

        Returns:
            Saved license entity
        """
        with transaction.atomic():
            LicenseModel.objects.filter(
                organization_id=license.organization_id, superseded_at__isnull=True
            ).exclude(id=license.id).update(superseded_at=timezone.now())
            model = self._to_model(license)
            model.superseded_at = None
            model.save()
        return self._to_domain(model)

    @sync_to_async
    def find_by_organization(self, organization_id: str) -> Optional[License]:
        """
        Find the current license of an organization.

        Args:
            organization_id: Organization ID

        Returns:
            License entity or None if not found
        """
        model = LicenseModel.objects.filter(
            organization_id=organization_id, superseded_at__isnull=True
        ).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def list_current(self) -> List[License]:
        """
        List the current license of every organization.

        Returns:
            List of License entities
        """
        models_list = LicenseModel.objects.filter(superseded_at__isnull=True).order_by(
            "organization_id"
        )
        return [self._to_domain(model) for model in models_list]

    @sync_to_async
    def find_overdue(self, now: datetime) -> List[License]:
        """
        Find current active licenses past their expiry.

        Args:
            now: Reference time

        Returns:
            List of License entities
        """
        models_list = LicenseModel.objects.filter(
            superseded_at__isnull=True,
            status=LicenseStatus.ACTIVE.value,
            expires_at__lt=now,
        )
        return [self._to_domain(model) for model in models_list]

    @sync_to_async
    def history(self, organization_id: str) -> List[License]:
        """
        List all licenses of an organization, newest first.

        Args:
            organization_id: Organization ID

        Returns:
            List of License entities
        """
        models_list = LicenseModel.objects.filter(organization_id=organization_id).order_by(
            "-issued_at"
        )
        return [self._to_domain(model) for model in models_list]
