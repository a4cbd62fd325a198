"""
License DTOs for API responses.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from licenses.domain.license import License
from licenses.domain.pricing import PricingDetails


@dataclass
class LicenseDTO:
    """DTO for license information."""

    id: uuid.UUID
    organization_id: str
    features: List[str]
    bundles: List[str]
    status: str
    issued_at: datetime
    expires_at: datetime
    payment_id: str
    currency: str
    amount: Decimal

    @classmethod
    def from_entity(cls, license: License) -> "LicenseDTO":
        return cls(
            id=license.id,
            organization_id=license.organization_id,
            features=sorted(license.features),
            bundles=sorted(license.bundles),
            status=license.status.value,
            issued_at=license.issued_at,
            expires_at=license.expires_at,
            payment_id=license.payment_id,
            currency=license.currency,
            amount=license.amount,
        )


@dataclass
class PricingDTO:
    """DTO for pricing details."""

    currency: str
    total_amount: Decimal
    feature_prices: Dict[str, Decimal]
    bundle_prices: Dict[str, Decimal]

    @classmethod
    def from_details(cls, details: PricingDetails) -> "PricingDTO":
        return cls(
            currency=details.currency,
            total_amount=details.total_amount,
            feature_prices={key: price.amount for key, price in details.feature_prices.items()},
            bundle_prices={key: price.amount for key, price in details.bundle_prices.items()},
        )


@dataclass
class LicenseStatusDTO:
    """DTO for license status response."""

    organization_id: str
    is_active: bool
    status: str
    expires_at: datetime
    active_features: List[str]
    active_bundles: List[str]
    payment_status: str
    pricing: Optional[PricingDTO]
    feature_access: Dict[str, bool] = field(default_factory=dict)


@dataclass
class RenewalStatusDTO:
    """DTO for renewal status response."""

    organization_id: str
    needs_renewal: bool
    in_grace_period: bool
    payment_required: bool
    renewal_available: bool
    priority: str
    days_until_expiry: Optional[int]
    expires_at: Optional[datetime]
    message: str


@dataclass
class BulkRenewalFailureDTO:
    """DTO for one failed organization of a bulk renewal."""

    organization_id: str
    code: str
    message: str


@dataclass
class BulkRenewalDTO:
    """DTO for bulk renewal response."""

    currency: str
    total_required: Decimal
    succeeded: List[LicenseDTO]
    failed: List[BulkRenewalFailureDTO]
