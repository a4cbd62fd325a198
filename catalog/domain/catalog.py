"""
Catalog domain entities.

Features, bundles and tiers are fixed definitions. The catalog answers
price lookups per currency and resolves bundle membership and feature
dependencies; it never changes at runtime.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple

from moneyed import Money

from catalog.domain.currency import BASE_CURRENCY, CurrencyConverter, round_money
from core.domain.exceptions import (
    InvalidBundleError,
    InvalidFeatureError,
    InvalidTierError,
    MissingFeatureDependencyError,
)
from core.domain.value_objects import BillingPeriod

DEFAULT_GRACE_PERIOD_DAYS = 14


class FeatureTier(Enum):
    """Commercial tier a feature belongs to."""

    FREE = "free"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Feature:
    """A single sellable capability."""

    id: str
    name: str
    tier: FeatureTier
    prices: Mapping[str, Money] = field(default_factory=dict)
    description: str = ""
    dependencies: Tuple[str, ...] = ()
    grace_period_days: int = DEFAULT_GRACE_PERIOD_DAYS

    @property
    def is_free(self) -> bool:
        return self.tier == FeatureTier.FREE


@dataclass(frozen=True)
class Bundle:
    """A named set of features sold together."""

    id: str
    name: str
    features: frozenset
    prices: Mapping[str, Money] = field(default_factory=dict)
    description: str = ""


@dataclass(frozen=True)
class Tier:
    """A named set of features sold as a single unit."""

    id: str
    name: str
    features: frozenset
    monthly_prices: Mapping[str, Money] = field(default_factory=dict)
    yearly_prices: Mapping[str, Money] = field(default_factory=dict)


class PricingCatalog:
    """
    Read-only catalog of features, bundles and tiers.

    Prices are stored for a few currencies; any other supported currency
    is derived from the EUR price through the converter and rounded to
    cents.
    """

    def __init__(
        self,
        features: Iterable[Feature],
        bundles: Iterable[Bundle],
        tiers: Iterable[Tier],
        converter: Optional[CurrencyConverter] = None,
    ):
        self.converter = converter or CurrencyConverter()
        self._features: Dict[str, Feature] = {f.id: f for f in features}
        self._bundles: Dict[str, Bundle] = {b.id: b for b in bundles}
        self._tiers: Dict[str, Tier] = {t.id: t for t in tiers}

        for bundle in self._bundles.values():
            unknown = set(bundle.features) - set(self._features)
            if unknown:
                raise ValueError(f"Bundle {bundle.id} references unknown features: {unknown}")
        for tier in self._tiers.values():
            unknown = set(tier.features) - set(self._features)
            if unknown:
                raise ValueError(f"Tier {tier.id} references unknown features: {unknown}")

    # Lookups

    def feature(self, feature_id: str) -> Feature:
        try:
            return self._features[feature_id]
        except KeyError:
            raise InvalidFeatureError(f"Unknown feature: {feature_id}") from None

    def bundle(self, bundle_id: str) -> Bundle:
        try:
            return self._bundles[bundle_id]
        except KeyError:
            raise InvalidBundleError(f"Unknown bundle: {bundle_id}") from None

    def tier(self, tier_id: str) -> Tier:
        try:
            return self._tiers[tier_id]
        except KeyError:
            raise InvalidTierError(f"Unknown tier: {tier_id}") from None

    def has_feature(self, feature_id: str) -> bool:
        return feature_id in self._features

    def has_bundle(self, bundle_id: str) -> bool:
        return bundle_id in self._bundles

    @property
    def features(self) -> Tuple[Feature, ...]:
        return tuple(self._features.values())

    @property
    def bundles(self) -> Tuple[Bundle, ...]:
        return tuple(self._bundles.values())

    @property
    def tiers(self) -> Tuple[Tier, ...]:
        return tuple(self._tiers.values())

    def free_features(self) -> frozenset:
        """Return the IDs of all free-tier features."""
        return frozenset(f.id for f in self._features.values() if f.is_free)

    def bundles_containing(self, feature_id: str) -> Tuple[str, ...]:
        return tuple(b.id for b in self._bundles.values() if feature_id in b.features)

    def expand(self, features: Iterable[str], bundles: Iterable[str]) -> frozenset:
        """
        Return every feature covered by a set of features and bundles.

        Raises:
            InvalidBundleError: If a bundle is unknown
        """
        covered = set(features)
        for bundle_id in bundles:
            covered.update(self.bundle(bundle_id).features)
        return frozenset(covered)

    # Prices

    def _price_in(self, prices: Mapping[str, Money], currency: str) -> Money:
        code = self.converter.normalize(currency)
        if code in prices:
            return prices[code]
        if not prices:
            return self.converter.money("0.00", code)
        source = prices[BASE_CURRENCY] if BASE_CURRENCY in prices else next(iter(prices.values()))
        return round_money(self.converter.convert(source, code))

    def feature_price(self, feature_id: str, currency: str) -> Money:
        """
        Return the monthly price of a feature.

        Raises:
            InvalidFeatureError: If the feature is unknown
            InvalidCurrencyError: If the currency is not supported
        """
        feature = self.feature(feature_id)
        if feature.is_free:
            return self.converter.money("0.00", currency)
        return self._price_in(feature.prices, currency)

    def bundle_price(self, bundle_id: str, currency: str) -> Money:
        """
        Return the monthly price of a bundle as a whole.

        Raises:
            InvalidBundleError: If the bundle is unknown
            InvalidCurrencyError: If the currency is not supported
        """
        return self._price_in(self.bundle(bundle_id).prices, currency)

    def tier_price(
        self,
        tier_id: str,
        currency: str,
        billing_period: BillingPeriod = BillingPeriod.MONTHLY,
    ) -> Money:
        """
        Return the price of a tier for one billing period.

        Quarterly tiers are charged as three monthly periods.

        Raises:
            InvalidTierError: If the tier is unknown
            InvalidCurrencyError: If the currency is not supported
        """
        tier = self.tier(tier_id)
        if billing_period == BillingPeriod.YEARLY:
            return self._price_in(tier.yearly_prices, currency)
        monthly = self._price_in(tier.monthly_prices, currency)
        if billing_period == BillingPeriod.QUARTERLY:
            return monthly * 3
        return monthly

    # Dependencies

    def missing_dependencies(self, features: Iterable[str], available: Iterable[str]) -> Dict[str, set]:
        """
        Find dependencies not covered by the available features.

        Free features always count as available.

        Args:
            features: Features whose dependencies are checked
            available: Features the organization has or is buying

        Returns:
            Map of feature ID to its uncovered dependencies
        """
        covered = set(available) | self.free_features()
        missing = {}
        for feature_id in features:
            gaps = {dep for dep in self.feature(feature_id).dependencies if dep not in covered}
            if gaps:
                missing[feature_id] = gaps
        return missing

    def validate_dependencies(self, features: Iterable[str], available: Iterable[str]) -> None:
        """
        Raise if any feature depends on something not available.

        Raises:
            MissingFeatureDependencyError: If a dependency is not covered
        """
        missing = self.missing_dependencies(features, available)
        if missing:
            details = "; ".join(
                f"{feature_id} requires {', '.join(sorted(deps))}"
                for feature_id, deps in sorted(missing.items())
            )
            raise MissingFeatureDependencyError(f"Missing feature dependencies: {details}")
