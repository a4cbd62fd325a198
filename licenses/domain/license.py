"""
License domain entity.

This is the core domain entity representing what an organization paid
for and until when. It contains business logic and is independent of
infrastructure.
"""
import math
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from core.domain.value_objects import LicenseStatus, validate_organization_id


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    An organization holds at most one current license. Renewal creates a
    replacement record; the previous one is kept as superseded.
    This is an immutable value object with business logic.
    """

    id: uuid.UUID
    organization_id: str
    features: frozenset
    bundles: frozenset
    issued_at: datetime
    expires_at: datetime
    status: LicenseStatus
    payment_id: str
    currency: str
    amount: Decimal

    def __post_init__(self):
        """Validate license entity."""
        validate_organization_id(self.organization_id)
        if not self.features and not self.bundles:
            raise ValueError("License must cover at least one feature or bundle")
        if self.expires_at <= self.issued_at:
            raise ValueError("License must expire after it is issued")

    @classmethod
    def create(
        cls,
        organization_id: str,
        features: Iterable[str],
        bundles: Iterable[str],
        payment_id: str,
        currency: str,
        amount: Decimal,
        duration: timedelta,
        now: datetime,
        license_id: Optional[uuid.UUID] = None,
    ) -> "License":
        """
        Create a new active License entity.

        Args:
            organization_id: Owning organization
            features: Directly licensed feature IDs
            bundles: Licensed bundle IDs
            payment_id: Payment that funded the license
            currency: ISO currency code of the payment
            amount: Paid amount
            duration: Validity period starting now
            now: Issue time
            license_id: Optional UUID (generated if not provided)

        Returns:
            License entity instance
        """
        return cls(
            id=license_id or uuid.uuid4(),
            organization_id=organization_id,
            features=frozenset(features),
            bundles=frozenset(bundles),
            issued_at=now,
            expires_at=now + duration,
            status=LicenseStatus.ACTIVE,
            payment_id=payment_id,
            currency=currency,
            amount=Decimal(amount),
        )

    @property
    def is_active(self) -> bool:
        return self.status == LicenseStatus.ACTIVE

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_valid(self, now: datetime) -> bool:
        """
        Check if license currently grants anything.

        Args:
            now: Current time

        Returns:
            True if license is active and not past its expiry
        """
        return self.is_active and not self.is_expired(now)

    def in_grace_period(self, now: datetime) -> bool:
        """Canceled licenses have no grace period."""
        return self.status != LicenseStatus.CANCELED and self.is_expired(now)

    def days_until_expiry(self, now: datetime) -> int:
        """Whole days until expiry, negative once expired."""
        return math.floor((self.expires_at - now) / timedelta(days=1))

    def renew(
        self,
        payment_id: str,
        currency: str,
        amount: Decimal,
        duration: timedelta,
        now: datetime,
    ) -> "License":
        """
        Create the replacement license for a renewal.

        The replacement keeps the feature and bundle set and starts a new
        validity period at now.

        Returns:
            New License instance with a new ID
        """
        return License.create(
            organization_id=self.organization_id,
            features=self.features,
            bundles=self.bundles,
            payment_id=payment_id,
            currency=currency,
            amount=amount,
            duration=duration,
            now=now,
        )

    def expire(self) -> "License":
        """
        Create a new License instance with expired status.

        Raises:
            ValueError: If the license is canceled
        """
        if self.status == LicenseStatus.CANCELED:
            raise ValueError("Cannot expire a canceled license")
        return replace(self, status=LicenseStatus.EXPIRED)

    def cancel(self) -> "License":
        """Create a new License instance with canceled status."""
        return replace(self, status=LicenseStatus.CANCELED)
