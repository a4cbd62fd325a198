"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
import re
from abc import ABC
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional

from core.domain.exceptions import (
    InvalidActivationTargetError,
    InvalidBillingPeriodError,
    InvalidOrganizationIDError,
    InvalidReportPeriodError,
    UnsupportedFormatError,
)

# Organization IDs end up in file names and cache keys
ORGANIZATION_ID_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.-]{0,254}")


def validate_organization_id(organization_id: str) -> str:
    """
    Check an organization ID and return it.

    IDs are 1-255 letters, digits, dots, dashes and underscores, starting
    with a letter or digit.

    Raises:
        InvalidOrganizationIDError: If the ID is empty or malformed
    """
    if not organization_id or not isinstance(organization_id, str) or not organization_id.strip():
        raise InvalidOrganizationIDError("Organization ID is required")
    if not ORGANIZATION_ID_PATTERN.fullmatch(organization_id):
        raise InvalidOrganizationIDError(f"Malformed organization ID: {organization_id!r}")
    return organization_id


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


class LicenseStatus(Enum):
    """License status value object."""

    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELED = "canceled"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


class BillingPeriod(Enum):
    """Billing period with its license duration."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def duration(self) -> timedelta:
        """Return the license duration covered by one billing period."""
        return {
            BillingPeriod.MONTHLY: timedelta(days=30),
            BillingPeriod.QUARTERLY: timedelta(days=90),
            BillingPeriod.YEARLY: timedelta(days=365),
        }[self]

    @classmethod
    def parse(cls, value: str) -> "BillingPeriod":
        """
        Parse a billing period name.

        Raises:
            InvalidBillingPeriodError: If the name is unknown
        """
        try:
            return cls((value or "").lower())
        except ValueError:
            raise InvalidBillingPeriodError(f"Invalid billing period: {value}") from None

    def __str__(self) -> str:
        return self.value


class ReportPeriod(Enum):
    """Usage report period."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: str) -> "ReportPeriod":
        """
        Parse a report period name.

        Raises:
            InvalidReportPeriodError: If the name is unknown
        """
        try:
            return cls((value or "").lower())
        except ValueError:
            raise InvalidReportPeriodError(f"Invalid report period: {value}") from None

    def __str__(self) -> str:
        return self.value


class ExportFormat(Enum):
    """Usage report export format."""

    JSON = "json"
    CSV = "csv"

    @classmethod
    def parse(cls, value: str) -> "ExportFormat":
        """
        Parse an export format name.

        Raises:
            UnsupportedFormatError: If the format is not supported
        """
        try:
            return cls((value or "").lower())
        except ValueError:
            raise UnsupportedFormatError(f"Unsupported export format: {value}") from None

    def __str__(self) -> str:
        return self.value


class ExpirationStatus(Enum):
    """Expiration state of a license as shown in usage reports."""

    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"

    def __str__(self) -> str:
        return self.value


class NotificationPriority(Enum):
    """Urgency of a renewal notification."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"

    @classmethod
    def for_days_until_expiry(cls, days: int) -> "NotificationPriority":
        """Map days until expiry to a notification tier."""
        if days < 0:
            return cls.CRITICAL
        if days <= 7:
            return cls.HIGH
        if days <= 14:
            return cls.MEDIUM
        if days <= 30:
            return cls.LOW
        return cls.NONE

    @property
    def rank(self) -> int:
        """Sort key, most urgent first."""
        return list(NotificationPriority).index(self)

    def __str__(self) -> str:
        return self.value


class ActivationKind(Enum):
    """Kind of catalog unit an activation request targets."""

    TIER = "tier"
    BUNDLE = "bundle"
    FEATURE = "feature"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ActivationTarget(ValueObject):
    """A tier, a bundle or a single feature to activate."""

    kind: ActivationKind
    target_id: str

    def __post_init__(self):
        """Validate target."""
        if not isinstance(self.kind, ActivationKind):
            raise InvalidActivationTargetError(f"Unknown activation kind: {self.kind}")
        if not self.target_id or not self.target_id.strip():
            raise InvalidActivationTargetError(f"{self.kind.value} ID cannot be empty")

    @classmethod
    def tier(cls, tier_id: str) -> "ActivationTarget":
        return cls(ActivationKind.TIER, tier_id)

    @classmethod
    def bundle(cls, bundle_id: str) -> "ActivationTarget":
        return cls(ActivationKind.BUNDLE, bundle_id)

    @classmethod
    def feature(cls, feature_id: str) -> "ActivationTarget":
        return cls(ActivationKind.FEATURE, feature_id)

    @classmethod
    def from_fields(
        cls,
        tier_id: Optional[str] = None,
        bundle_id: Optional[str] = None,
        feature_id: Optional[str] = None,
    ) -> "ActivationTarget":
        """
        Build a target from a request carrying optional IDs.

        Exactly one of the IDs must be set.

        Raises:
            InvalidActivationTargetError: If zero or several IDs are set
        """
        given = [
            (kind, value)
            for kind, value in (
                (ActivationKind.TIER, tier_id),
                (ActivationKind.BUNDLE, bundle_id),
                (ActivationKind.FEATURE, feature_id),
            )
            if value
        ]
        if len(given) != 1:
            raise InvalidActivationTargetError()
        kind, value = given[0]
        return cls(kind, value)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.target_id}"


@dataclass(frozen=True)
class RequestIdentity(ValueObject):
    """Organization and user on whose behalf an operation runs."""

    organization_id: str
    user_id: Optional[str] = None

    def __post_init__(self):
        """Validate identity."""
        validate_organization_id(self.organization_id)
