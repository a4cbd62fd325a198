"""
Entitlement resolution.

The resolver answers whether an organization may use a feature right now,
combining license status, expiry and payment validity. It only reads
licenses; every write goes through activation or renewal.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from asgiref.sync import sync_to_async
from django.utils import timezone

from catalog.domain.catalog import PricingCatalog
from core.domain.value_objects import LicenseStatus, NotificationPriority
from core.metrics import entitlement_checks_total
from licenses.domain.license import License
from licenses.domain.pricing import PaymentValidator
from licenses.ports.license_repository import LicenseRepository
from usage.domain.tracker import UsageTracker

logger = logging.getLogger(__name__)

RENEWAL_WINDOW_DAYS = 30

# Denial reasons
NO_LICENSE = "no_license"
LICENSE_INACTIVE = "license_inactive"
LICENSE_EXPIRED = "license_expired"
PAYMENT_INVALID = "payment_invalid"
FEATURE_NOT_LICENSED = "feature_not_licensed"


@dataclass(frozen=True)
class AccessStatus:
    """Outcome of an entitlement check."""

    has_access: bool
    is_active: bool
    expires_at: Optional[datetime]
    in_grace_period: bool
    payment_valid: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class RenewalStatus:
    """Renewal state of an organization's license."""

    organization_id: str
    needs_renewal: bool
    in_grace_period: bool
    payment_required: bool
    renewal_available: bool
    priority: NotificationPriority
    days_until_expiry: Optional[int]
    expires_at: Optional[datetime]
    message: str


@dataclass(frozen=True)
class RenewalNotification:
    """A license that needs its owner's attention."""

    organization_id: str
    priority: NotificationPriority
    days_until_expiry: int
    expires_at: datetime
    message: str


def renewal_message(priority: NotificationPriority, days: int) -> str:
    """Human-readable text for a renewal notification tier."""
    if priority == NotificationPriority.CRITICAL:
        return "License has expired. Renewal required immediately."
    if priority == NotificationPriority.HIGH:
        return f"License expires in {days} days. Please renew soon."
    if priority == NotificationPriority.MEDIUM:
        return f"License expires in {days} days."
    if priority == NotificationPriority.LOW:
        return f"License expires in {days} days. Consider renewing."
    return ""


class EntitlementResolver:
    """
    Domain service deciding feature and bundle access.

    A feature is granted when the organization's license is active and
    unexpired, its amount matches the catalog price, and the feature is
    licensed directly, through a bundle, or is free. Usage is tracked
    only for granted checks.
    """

    def __init__(
        self,
        license_repository: LicenseRepository,
        catalog: PricingCatalog,
        validator: PaymentValidator,
        tracker: Optional[UsageTracker] = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.license_repository = license_repository
        self.catalog = catalog
        self.validator = validator
        self.tracker = tracker
        self.clock = clock

    def covered_features(self, license: License) -> frozenset:
        """
        Return every feature a license covers when it is valid.

        Bundles no longer in the catalog contribute nothing.
        """
        covered = set(license.features) | self.catalog.free_features()
        for bundle_id in license.bundles:
            if self.catalog.has_bundle(bundle_id):
                covered.update(self.catalog.bundle(bundle_id).features)
        return frozenset(covered)

    def evaluate(self, license: Optional[License], feature_id: str, now: datetime) -> AccessStatus:
        """
        Decide access to a feature for an already loaded license.

        Args:
            license: The organization's current license, if any
            feature_id: Feature being checked
            now: Reference time

        Returns:
            AccessStatus describing the decision
        """
        if license is None:
            return AccessStatus(
                has_access=False,
                is_active=False,
                expires_at=None,
                in_grace_period=False,
                payment_valid=False,
                reason=NO_LICENSE,
            )

        in_grace = license.in_grace_period(now)
        if not license.is_valid(now):
            return AccessStatus(
                has_access=False,
                is_active=license.is_active,
                expires_at=license.expires_at,
                in_grace_period=in_grace,
                payment_valid=self.validator.is_payment_valid(license),
                reason=LICENSE_EXPIRED if license.is_expired(now) else LICENSE_INACTIVE,
            )

        payment_valid = self.validator.is_payment_valid(license)
        if not payment_valid:
            return AccessStatus(
                has_access=False,
                is_active=True,
                expires_at=license.expires_at,
                in_grace_period=False,
                payment_valid=False,
                reason=PAYMENT_INVALID,
            )

        granted = feature_id in self.covered_features(license)
        return AccessStatus(
            has_access=granted,
            is_active=True,
            expires_at=license.expires_at,
            in_grace_period=False,
            payment_valid=True,
            reason=None if granted else FEATURE_NOT_LICENSED,
        )

    async def access_status(self, organization_id: str, feature_id: str) -> AccessStatus:
        """
        Explain whether an organization may use a feature.

        This does not record usage.

        Args:
            organization_id: Organization ID
            feature_id: Feature ID

        Returns:
            AccessStatus for the feature
        """
        license = await self.license_repository.find_by_organization(organization_id)
        return self.evaluate(license, feature_id, self.clock())

    async def check_access(self, organization_id: str, feature_id: str) -> AccessStatus:
        """
        Decide access to a feature and record usage when granted.

        Args:
            organization_id: Organization ID
            feature_id: Feature ID

        Returns:
            AccessStatus for the feature
        """
        status = await self.access_status(organization_id, feature_id)
        entitlement_checks_total.labels(result="granted" if status.has_access else "denied").inc()
        if not status.has_access:
            logger.info(
                "Feature access denied",
                extra={
                    "organization_id": organization_id,
                    "feature_id": feature_id,
                    "reason": status.reason,
                },
            )
        elif self.tracker is not None:
            await sync_to_async(self.tracker.track)(organization_id, feature_id)
        return status

    async def has_access(self, organization_id: str, feature_id: str) -> bool:
        """
        Check access to a feature and record usage when granted.

        Args:
            organization_id: Organization ID
            feature_id: Feature ID

        Returns:
            True if the organization may use the feature now
        """
        status = await self.check_access(organization_id, feature_id)
        return status.has_access

    async def has_bundle_access(self, organization_id: str, bundle_id: str) -> bool:
        """
        Check whether a valid, payment-valid license lists a bundle.

        Args:
            organization_id: Organization ID
            bundle_id: Bundle ID

        Returns:
            True if the bundle is licensed and usable now
        """
        license = await self.license_repository.find_by_organization(organization_id)
        if license is None or not license.is_valid(self.clock()):
            return False
        return bundle_id in license.bundles and self.validator.is_payment_valid(license)

    def feature_access_map(self, license: License, now: datetime) -> Dict[str, bool]:
        """Access decision for every feature the license covers."""
        return {
            feature_id: self.evaluate(license, feature_id, now).has_access
            for feature_id in sorted(self.covered_features(license))
        }

    def renewal_status_for(
        self, organization_id: str, license: Optional[License], now: datetime
    ) -> RenewalStatus:
        """
        Compute renewal state for an already loaded license.

        Args:
            organization_id: Organization ID
            license: The organization's current license, if any
            now: Reference time

        Returns:
            RenewalStatus
        """
        if license is None:
            return RenewalStatus(
                organization_id=organization_id,
                needs_renewal=True,
                in_grace_period=False,
                payment_required=True,
                renewal_available=True,
                priority=NotificationPriority.CRITICAL,
                days_until_expiry=None,
                expires_at=None,
                message="No license found. A license purchase is required.",
            )

        days = license.days_until_expiry(now)
        priority = NotificationPriority.for_days_until_expiry(days)
        in_grace = license.in_grace_period(now)
        payment_valid = self.validator.is_payment_valid(license)
        needs_renewal = days <= RENEWAL_WINDOW_DAYS or not license.is_active or not payment_valid
        payment_required = in_grace or not license.is_active or not payment_valid

        return RenewalStatus(
            organization_id=organization_id,
            needs_renewal=needs_renewal,
            in_grace_period=in_grace,
            payment_required=payment_required,
            renewal_available=needs_renewal,
            priority=priority,
            days_until_expiry=days,
            expires_at=license.expires_at,
            message=renewal_message(priority, days),
        )

    async def get_renewal_status(self, organization_id: str) -> RenewalStatus:
        """
        Report whether an organization should renew.

        Args:
            organization_id: Organization ID

        Returns:
            RenewalStatus
        """
        license = await self.license_repository.find_by_organization(organization_id)
        return self.renewal_status_for(organization_id, license, self.clock())

    async def get_renewal_notifications(self) -> List[RenewalNotification]:
        """
        List licenses due for renewal, most urgent first.

        Canceled licenses are skipped.

        Returns:
            List of RenewalNotification
        """
        now = self.clock()
        notifications = []
        for license in await self.license_repository.list_current():
            if license.status == LicenseStatus.CANCELED:
                continue
            days = license.days_until_expiry(now)
            priority = NotificationPriority.for_days_until_expiry(days)
            if priority == NotificationPriority.NONE:
                continue
            notifications.append(
                RenewalNotification(
                    organization_id=license.organization_id,
                    priority=priority,
                    days_until_expiry=days,
                    expires_at=license.expires_at,
                    message=renewal_message(priority, days),
                )
            )
        notifications.sort(key=lambda n: (n.priority.rank, n.days_until_expiry))
        return notifications
