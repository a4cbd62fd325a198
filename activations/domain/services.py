"""
Activation domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from django.utils import timezone
from moneyed import Money

from activations.domain.activation import FeatureActivation
from activations.domain.events import FeaturesActivated, FeaturesDeactivated
from activations.ports.activation_repository import ActivationRepository
from catalog.domain.catalog import PricingCatalog
from core.domain.events import EventBus
from core.domain.exceptions import (
    FeatureNotAllowedError,
    InvalidActivationTargetError,
    LicenseRequiredError,
    repository_failures,
)
from core.domain.value_objects import ActivationKind, ActivationTarget
from core.infrastructure.locks import OrganizationLocks
from core.metrics import feature_activations_total
from licenses.domain.license import License
from licenses.domain.resolver import EntitlementResolver
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureActivationStatus:
    """Activation and access state of one feature."""

    feature_id: str
    active: bool
    has_access: bool
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    source: Optional[str] = None


@dataclass(frozen=True)
class BundleActivationStatus:
    """Activation state of a bundle: active when every member is."""

    bundle_id: str
    active: bool
    features: Dict[str, FeatureActivationStatus] = field(default_factory=dict)


class FeatureActivationService:
    """
    Domain service turning features on and off.

    Activating a tier or bundle writes one activation per member feature.
    The writes are not transactional: a repository failure stops the
    fan-out and leaves earlier writes in place. Re-activating an active
    feature changes nothing, so retrying a partial fan-out is safe.
    """

    def __init__(
        self,
        activation_repository: ActivationRepository,
        license_repository: LicenseRepository,
        resolver: EntitlementResolver,
        catalog: PricingCatalog,
        locks: OrganizationLocks,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.activation_repository = activation_repository
        self.license_repository = license_repository
        self.resolver = resolver
        self.catalog = catalog
        self.locks = locks
        self.event_bus = event_bus
        self.clock = clock

    def resolve_target(self, target: ActivationTarget, currency: str) -> Tuple[frozenset, Money]:
        """
        Return the member features and unit price of an activation target.

        Args:
            target: Tier, bundle or feature
            currency: Currency to price the unit in

        Returns:
            Tuple of (feature IDs, price of the whole unit)

        Raises:
            InvalidTierError, InvalidBundleError, InvalidFeatureError: If unknown
        """
        if target.kind == ActivationKind.TIER:
            tier = self.catalog.tier(target.target_id)
            return frozenset(tier.features), self.catalog.tier_price(tier.id, currency)
        if target.kind == ActivationKind.BUNDLE:
            bundle = self.catalog.bundle(target.target_id)
            return frozenset(bundle.features), self.catalog.bundle_price(bundle.id, currency)
        feature = self.catalog.feature(target.target_id)
        return frozenset({feature.id}), self.catalog.feature_price(feature.id, currency)

    async def _load_valid_license(self, organization_id: str, now: datetime) -> License:
        with repository_failures("load license"):
            license = await self.license_repository.find_by_organization(organization_id)
        if license is None:
            raise LicenseRequiredError(f"Organization {organization_id} has no license")
        if not license.is_valid(now):
            raise LicenseRequiredError(f"License of organization {organization_id} is not valid")
        if not self.resolver.validator.is_payment_valid(license):
            raise LicenseRequiredError(
                f"License payment of organization {organization_id} is not valid"
            )
        return license

    async def _fan_out(
        self,
        license: License,
        feature_ids: frozenset,
        price: Money,
        source: str,
        now: datetime,
    ) -> List[FeatureActivation]:
        results = []
        for feature_id in sorted(feature_ids):
            with repository_failures(f"load activation {feature_id}"):
                existing = await self.activation_repository.find(
                    license.organization_id, feature_id
                )
            if existing is not None and existing.is_current(now):
                if existing.is_backed_by(license):
                    results.append(existing)
                    continue
                # Still on from an earlier license: follow the new one
                activation = existing.extend(license.expires_at, now, payment_id=license.payment_id)
            elif existing is not None:
                activation = existing.reactivate(
                    payment_id=license.payment_id,
                    currency=license.currency,
                    amount=price.amount,
                    source=source,
                    now=now,
                    expires_at=license.expires_at,
                )
            else:
                activation = FeatureActivation.create(
                    organization_id=license.organization_id,
                    feature_id=feature_id,
                    payment_id=license.payment_id,
                    currency=license.currency,
                    amount=price.amount,
                    source=source,
                    now=now,
                    expires_at=license.expires_at,
                )
            with repository_failures(f"save activation {feature_id}"):
                saved = await self.activation_repository.save(activation)
            feature_activations_total.labels(action="activate").inc()
            results.append(saved)
        return results

    async def activate(
        self, organization_id: str, target: ActivationTarget
    ) -> List[FeatureActivation]:
        """
        Activate a tier, bundle or feature for an organization.

        Args:
            organization_id: Organization ID
            target: What to activate

        Returns:
            One activation per member feature

        Raises:
            LicenseRequiredError: If there is no valid, payment-valid license
            FeatureNotAllowedError: If the license does not cover a member feature
            MissingFeatureDependencyError: If a member's dependencies are not covered
            RepositoryFailureError: If storage fails part way
        """
        async with self.locks.hold(organization_id):
            now = self.clock()
            license = await self._load_valid_license(organization_id, now)
            feature_ids, price = self.resolve_target(target, license.currency)

            covered = self.resolver.covered_features(license)
            not_covered = feature_ids - covered
            if not_covered:
                raise FeatureNotAllowedError(
                    f"License does not cover: {', '.join(sorted(not_covered))}"
                )
            self.catalog.validate_dependencies(feature_ids, covered)

            activations = await self._fan_out(license, feature_ids, price, str(target), now)

        logger.info(
            "Features activated",
            extra={
                "organization_id": organization_id,
                "target": str(target),
                "features": sorted(feature_ids),
            },
        )
        await self._publish(
            FeaturesActivated(
                organization_id=organization_id,
                target=str(target),
                feature_ids=tuple(sorted(feature_ids)),
            )
        )
        return activations

    async def fan_out_license(self, license: License) -> List[FeatureActivation]:
        """
        Activate everything a freshly stored license pays for.

        Bundles are recorded with the bundle price, direct features with
        their own price. Must be called with the organization lock held.

        Args:
            license: The organization's new license

        Returns:
            Activations written or already active
        """
        now = self.clock()
        activations = []
        for bundle_id in sorted(license.bundles):
            feature_ids, price = self.resolve_target(
                ActivationTarget.bundle(bundle_id), license.currency
            )
            activations.extend(
                await self._fan_out(license, feature_ids, price, f"bundle:{bundle_id}", now)
            )
        for feature_id in sorted(license.features):
            price = self.catalog.feature_price(feature_id, license.currency)
            activations.extend(
                await self._fan_out(
                    license, frozenset({feature_id}), price, f"feature:{feature_id}", now
                )
            )
        return activations

    async def _deactivate_features(
        self, organization_id: str, feature_ids: frozenset, now: datetime
    ) -> List[FeatureActivation]:
        results = []
        for feature_id in sorted(feature_ids):
            with repository_failures(f"load activation {feature_id}"):
                existing = await self.activation_repository.find(organization_id, feature_id)
            if existing is None or not existing.active:
                continue
            with repository_failures(f"save activation {feature_id}"):
                saved = await self.activation_repository.save(existing.deactivate(now))
            feature_activations_total.labels(action="deactivate").inc()
            results.append(saved)
        return results

    async def deactivate(
        self, organization_id: str, target: ActivationTarget
    ) -> List[FeatureActivation]:
        """
        Turn off a feature or every feature of a bundle.

        Features that are not active are skipped.

        Args:
            organization_id: Organization ID
            target: Bundle or feature

        Returns:
            Activations that were turned off

        Raises:
            InvalidActivationTargetError: If the target is a tier
        """
        if target.kind == ActivationKind.TIER:
            raise InvalidActivationTargetError("Tiers cannot be deactivated; deactivate features or bundles")
        if target.kind == ActivationKind.BUNDLE:
            feature_ids = frozenset(self.catalog.bundle(target.target_id).features)
        else:
            feature_ids = frozenset({self.catalog.feature(target.target_id).id})

        async with self.locks.hold(organization_id):
            deactivated = await self._deactivate_features(organization_id, feature_ids, self.clock())

        await self._publish(
            FeaturesDeactivated(
                organization_id=organization_id,
                target=str(target),
                feature_ids=tuple(a.feature_id for a in deactivated),
            )
        )
        return deactivated

    async def deactivate_all(self, organization_id: str) -> List[FeatureActivation]:
        """
        Turn off every active feature of an organization.

        Must be called with the organization lock held.
        """
        with repository_failures("list activations"):
            active = await self.activation_repository.list_active(organization_id)
        return await self._deactivate_features(
            organization_id, frozenset(a.feature_id for a in active), self.clock()
        )

    async def extend_for_license(self, license: License) -> int:
        """
        Move the expiry of active activations to the license expiry.

        Args:
            license: The organization's renewed license

        Returns:
            Number of activations extended
        """
        async with self.locks.hold(license.organization_id):
            now = self.clock()
            with repository_failures("list activations"):
                active = await self.activation_repository.list_active(license.organization_id)
            for activation in active:
                with repository_failures(f"save activation {activation.feature_id}"):
                    await self.activation_repository.save(
                        activation.extend(license.expires_at, now, payment_id=license.payment_id)
                    )
        return len(active)

    async def feature_status(self, organization_id: str, feature_id: str) -> FeatureActivationStatus:
        """
        Report whether a feature is turned on and usable.

        A feature counts as active only while its row is active and the
        license still grants it.

        Raises:
            InvalidFeatureError: If the feature is unknown
        """
        self.catalog.feature(feature_id)
        now = self.clock()
        with repository_failures("load feature status"):
            license = await self.license_repository.find_by_organization(organization_id)
            activation = await self.activation_repository.find(organization_id, feature_id)
        return self._status_of(feature_id, license, activation, now)

    def _status_of(
        self,
        feature_id: str,
        license: Optional[License],
        activation: Optional[FeatureActivation],
        now: datetime,
    ) -> FeatureActivationStatus:
        has_access = self.resolver.evaluate(license, feature_id, now).has_access
        if activation is None:
            return FeatureActivationStatus(feature_id=feature_id, active=False, has_access=has_access)
        return FeatureActivationStatus(
            feature_id=feature_id,
            active=activation.is_current(now) and has_access,
            has_access=has_access,
            activated_at=activation.activated_at,
            expires_at=activation.expires_at,
            source=activation.source,
        )

    async def bundle_status(self, organization_id: str, bundle_id: str) -> BundleActivationStatus:
        """
        Report the activation state of every member of a bundle.

        Raises:
            InvalidBundleError: If the bundle is unknown
        """
        bundle = self.catalog.bundle(bundle_id)
        now = self.clock()
        with repository_failures("load bundle status"):
            license = await self.license_repository.find_by_organization(organization_id)
            rows = {
                a.feature_id: a
                for a in await self.activation_repository.list_by_organization(organization_id)
            }
        statuses = {
            feature_id: self._status_of(feature_id, license, rows.get(feature_id), now)
            for feature_id in sorted(bundle.features)
        }
        return BundleActivationStatus(
            bundle_id=bundle_id,
            active=all(status.active for status in statuses.values()),
            features=statuses,
        )

    async def _publish(self, event) -> None:
        if self.event_bus is not None:
            await self.event_bus.publish(event)
