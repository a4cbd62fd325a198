"""
Pricing and payment validation.

Expected charges are derived from the catalog; a license stays
payment-valid only while its recorded amount matches that charge.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable

from moneyed import Money

from catalog.domain.catalog import PricingCatalog
from core.domain.exceptions import InsufficientPaymentError, InvalidAmountError, ValidationError
from licenses.domain.license import License

PAYMENT_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class PricingDetails:
    """Expected charge for a set of features and bundles."""

    currency: str
    total: Money
    feature_prices: Dict[str, Money] = field(default_factory=dict)
    bundle_prices: Dict[str, Money] = field(default_factory=dict)

    @property
    def total_amount(self) -> Decimal:
        return self.total.amount


class PaymentValidator:
    """Domain service computing prices and checking paid amounts."""

    def __init__(self, catalog: PricingCatalog, tolerance: Decimal = PAYMENT_TOLERANCE):
        self.catalog = catalog
        self.tolerance = tolerance

    def calculate_pricing(
        self, features: Iterable[str], bundles: Iterable[str], currency: str
    ) -> PricingDetails:
        """
        Compute the expected charge.

        Features and bundles are priced independently; a feature that is
        also part of a listed bundle is charged in both.

        Args:
            features: Feature IDs
            bundles: Bundle IDs
            currency: ISO currency code

        Returns:
            PricingDetails with per-item and total amounts

        Raises:
            InvalidCurrencyError: If the currency is unsupported
            InvalidFeatureError: If a feature is unknown
            InvalidBundleError: If a bundle is unknown
        """
        code = self.catalog.converter.normalize(currency)
        feature_prices = {
            feature_id: self.catalog.feature_price(feature_id, code)
            for feature_id in sorted(set(features))
        }
        bundle_prices = {
            bundle_id: self.catalog.bundle_price(bundle_id, code)
            for bundle_id in sorted(set(bundles))
        }
        zero = self.catalog.converter.money("0.00", code)
        total = sum(feature_prices.values(), zero) + sum(bundle_prices.values(), zero)
        return PricingDetails(
            currency=code,
            total=total,
            feature_prices=feature_prices,
            bundle_prices=bundle_prices,
        )

    def validate_payment(
        self,
        amount: Decimal,
        currency: str,
        features: Iterable[str] = (),
        bundles: Iterable[str] = (),
    ) -> PricingDetails:
        """
        Check that a paid amount covers the computed total.

        Returns:
            The pricing the amount was checked against

        Raises:
            InvalidAmountError: If the amount is not positive
            InsufficientPaymentError: If the amount is below the total
            InvalidCurrencyError: If the currency is unsupported
        """
        if amount is None or Decimal(amount) <= 0:
            raise InvalidAmountError("Payment amount must be positive")
        pricing = self.calculate_pricing(features, bundles, currency)
        paid = self.catalog.converter.money(amount, pricing.currency)
        if paid < pricing.total:
            raise InsufficientPaymentError(
                f"Payment of {paid} is below the required {pricing.total}"
            )
        return pricing

    def validate_license_payment(self, license: License) -> PricingDetails:
        """
        Check that a license's amount matches its expected price.

        Raises:
            InvalidAmountError: If the amount is off by more than the tolerance
            InvalidCurrencyError: If the license currency is unsupported
        """
        if license.amount <= 0:
            raise InvalidAmountError("License amount must be positive")
        pricing = self.calculate_pricing(license.features, license.bundles, license.currency)
        paid = self.catalog.converter.money(license.amount, pricing.currency)
        if abs(paid - pricing.total) > Money(self.tolerance, paid.currency):
            raise InvalidAmountError(
                f"License amount {paid} does not match expected {pricing.total}"
            )
        return pricing

    def is_payment_valid(self, license: License) -> bool:
        """
        Return whether validate_license_payment would succeed.

        A license naming features no longer in the catalog is invalid.
        """
        try:
            self.validate_license_payment(license)
        except ValidationError:
            return False
        return True
