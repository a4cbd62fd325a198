"""
Activation DTOs for API responses.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from activations.domain.activation import FeatureActivation
from activations.domain.services import BundleActivationStatus, FeatureActivationStatus
from licenses.domain.resolver import AccessStatus


@dataclass
class ActivationDTO:
    """DTO for activation information."""

    id: uuid.UUID
    feature_id: str
    active: bool
    activated_at: datetime
    expires_at: Optional[datetime]
    payment_id: str
    currency: str
    amount: Decimal
    source: str

    @classmethod
    def from_entity(cls, activation: FeatureActivation) -> "ActivationDTO":
        return cls(
            id=activation.id,
            feature_id=activation.feature_id,
            active=activation.active,
            activated_at=activation.activated_at,
            expires_at=activation.expires_at,
            payment_id=activation.payment_id,
            currency=activation.currency,
            amount=activation.amount,
            source=activation.source,
        )


@dataclass
class ActivationResultDTO:
    """DTO for activate and deactivate responses."""

    organization_id: str
    target: str
    activations: List[ActivationDTO]
    message: str


@dataclass
class FeatureStatusDTO:
    """DTO for feature activation status."""

    feature_id: str
    active: bool
    has_access: bool
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    source: Optional[str] = None

    @classmethod
    def from_status(cls, status: FeatureActivationStatus) -> "FeatureStatusDTO":
        return cls(
            feature_id=status.feature_id,
            active=status.active,
            has_access=status.has_access,
            activated_at=status.activated_at,
            expires_at=status.expires_at,
            source=status.source,
        )


@dataclass
class FeatureAccessDTO:
    """DTO for feature access check."""

    organization_id: str
    feature_id: str
    has_access: bool
    is_active: bool
    in_grace_period: bool
    payment_valid: bool
    expires_at: Optional[datetime]
    reason: str

    @classmethod
    def from_status(
        cls, organization_id: str, feature_id: str, status: AccessStatus
    ) -> "FeatureAccessDTO":
        return cls(
            organization_id=organization_id,
            feature_id=feature_id,
            has_access=status.has_access,
            is_active=status.is_active,
            in_grace_period=status.in_grace_period,
            payment_valid=status.payment_valid,
            expires_at=status.expires_at,
            reason=status.reason,
        )


@dataclass
class BundleStatusDTO:
    """DTO for bundle activation status."""

    bundle_id: str
    active: bool
    features: Dict[str, FeatureStatusDTO] = field(default_factory=dict)

    @classmethod
    def from_status(cls, status: BundleActivationStatus) -> "BundleStatusDTO":
        return cls(
            bundle_id=status.bundle_id,
            active=status.active,
            features={
                feature_id: FeatureStatusDTO.from_status(feature_status)
                for feature_id, feature_status in status.features.items()
            },
        )
