"""
Feature activation domain entity.

A feature activation is the durable flag saying one feature is turned on
for one organization. Tier and bundle activations fan out into one
activation per member feature.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.domain.value_objects import validate_organization_id


@dataclass(frozen=True)
class FeatureActivation:
    """
    Feature activation domain entity.

    The amount records the catalog price of the unit the feature was
    activated through (the whole tier or bundle) and is informational
    only. Access is always decided against the license.
    """

    id: uuid.UUID
    organization_id: str
    feature_id: str
    active: bool
    activated_at: datetime
    expires_at: Optional[datetime]
    payment_id: str
    currency: str
    amount: Decimal
    source: str
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate activation entity."""
        validate_organization_id(self.organization_id)
        if not self.feature_id:
            raise ValueError("Feature ID is required")

    @classmethod
    def create(
        cls,
        organization_id: str,
        feature_id: str,
        payment_id: str,
        currency: str,
        amount: Decimal,
        source: str,
        now: datetime,
        expires_at: Optional[datetime] = None,
        activation_id: Optional[uuid.UUID] = None,
    ) -> "FeatureActivation":
        """
        Create a new active FeatureActivation entity.

        Args:
            organization_id: Owning organization
            feature_id: Activated feature
            payment_id: Payment of the license backing the activation
            currency: Currency of amount
            amount: Catalog price of the activated unit
            source: Unit the feature was activated through, e.g. "bundle:security"
            now: Activation time
            expires_at: Optional expiry, normally the license expiry
            activation_id: Optional UUID (generated if not provided)

        Returns:
            FeatureActivation entity instance
        """
        return cls(
            id=activation_id or uuid.uuid4(),
            organization_id=organization_id,
            feature_id=feature_id,
            active=True,
            activated_at=now,
            expires_at=expires_at,
            payment_id=payment_id,
            currency=currency,
            amount=Decimal(amount),
            source=source,
            created_at=now,
            updated_at=now,
        )

    def is_current(self, now: datetime) -> bool:
        """Active and not past its own expiry."""
        if not self.active:
            return False
        return self.expires_at is None or now <= self.expires_at

    def reactivate(
        self,
        payment_id: str,
        currency: str,
        amount: Decimal,
        source: str,
        now: datetime,
        expires_at: Optional[datetime] = None,
    ) -> "FeatureActivation":
        """Create a new instance turned back on under a new unit."""
        return replace(
            self,
            active=True,
            activated_at=now,
            expires_at=expires_at,
            payment_id=payment_id,
            currency=currency,
            amount=Decimal(amount),
            source=source,
            updated_at=now,
        )

    def deactivate(self, now: datetime) -> "FeatureActivation":
        """Create a new instance turned off."""
        return replace(self, active=False, updated_at=now)

    def is_backed_by(self, license) -> bool:
        """Whether the row already follows this license's payment and expiry."""
        return self.payment_id == license.payment_id and self.expires_at == license.expires_at

    def extend(
        self, expires_at: datetime, now: datetime, payment_id: Optional[str] = None
    ) -> "FeatureActivation":
        """Create a new instance with a new expiry, optionally under a new payment."""
        return replace(
            self,
            expires_at=expires_at,
            payment_id=payment_id or self.payment_id,
            updated_at=now,
        )
