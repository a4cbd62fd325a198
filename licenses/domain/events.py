"""
License domain events.

Domain events represent something that happened in the license domain.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from core.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class LicenseActivated(DomainEvent):
    """Event raised when a paid license is activated."""

    license_id: str
    features: Tuple[str, ...]
    bundles: Tuple[str, ...]
    payment_id: str
    currency: str
    amount: str
    expires_at: datetime


@dataclass(frozen=True, kw_only=True)
class LicenseRenewed(DomainEvent):
    """Event raised when a license is replaced by a renewal."""

    license_id: str
    previous_license_id: str
    payment_id: str
    currency: str
    amount: str
    expires_at: datetime


@dataclass(frozen=True, kw_only=True)
class LicenseExpired(DomainEvent):
    """Event raised when an overdue license is marked expired."""

    license_id: str
    expired_at: datetime


@dataclass(frozen=True, kw_only=True)
class LicenseCanceled(DomainEvent):
    """Event raised when a license is canceled after a failed payment."""

    license_id: str
    payment_id: str
    reason: Optional[str] = None

