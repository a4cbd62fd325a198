"""
Payment domain objects.

Payments live at the provider; these are the service's view of them.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

PURCHASE = "purchase"
RENEWAL = "renewal"


class PaymentStatus(Enum):
    """Payment status as reported by the provider."""

    OPEN = "open"
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    EXPIRED = "expired"
    CANCELED = "canceled"

    @property
    def is_failure(self) -> bool:
        return self in (PaymentStatus.FAILED, PaymentStatus.EXPIRED, PaymentStatus.CANCELED)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class PaymentMetadata:
    """What a payment pays for, sent to and returned by the provider."""

    organization_id: str
    features: Tuple[str, ...] = ()
    bundles: Tuple[str, ...] = ()
    billing_period: str = "monthly"
    kind: str = PURCHASE
    recipient: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "organization_id": self.organization_id,
            "features": list(self.features),
            "bundles": list(self.bundles),
            "billing_period": self.billing_period,
            "kind": self.kind,
            "recipient": self.recipient,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PaymentMetadata":
        data = data or {}
        return cls(
            organization_id=data.get("organization_id") or "",
            features=tuple(data.get("features") or ()),
            bundles=tuple(data.get("bundles") or ()),
            billing_period=data.get("billing_period") or "monthly",
            kind=data.get("kind") or PURCHASE,
            recipient=data.get("recipient"),
        )


@dataclass(frozen=True)
class PaymentResponse:
    """Result of creating a payment."""

    id: str
    status: PaymentStatus
    redirect_url: Optional[str] = None


@dataclass(frozen=True)
class Payment:
    """Authoritative payment state fetched from the provider."""

    id: str
    status: PaymentStatus
    amount: Decimal
    currency: str
    description: str = ""
    metadata: PaymentMetadata = field(default_factory=lambda: PaymentMetadata(organization_id=""))
    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
