"""
Unit tests for the pricing catalog and currency conversion.
"""


import pytest
from moneyed import Money

from catalog.domain.currency import CurrencyConverter, round_money
from core.domain.exceptions import (
    InvalidBundleError,
    InvalidCurrencyError,
    InvalidFeatureError,
    InvalidTierError,
    MissingFeatureDependencyError,
)
from core.domain.value_objects import BillingPeriod

SUPPORTED = ["USD", "EUR", "GBP", "JPY", "AUD", "CAD", "CHF", "CNY", "SEK", "NZD"]


class TestCurrencyConverter:
    """Tests for CurrencyConverter."""

    def test_supported_currencies(self):
        assert CurrencyConverter().supported_currencies == frozenset(SUPPORTED)

    def test_normalize_is_case_insensitive(self):
        assert CurrencyConverter().normalize("usd") == "USD"

    @pytest.mark.parametrize("currency", ["XYZ", "BRL", "", None])
    def test_unsupported_currency(self, currency):
        """Test unknown ISO codes and codes without a rate are rejected."""
        with pytest.raises(InvalidCurrencyError):
            CurrencyConverter().normalize(currency)

    def test_convert_through_eur(self):
        """Test conversion uses amount / from_rate * to_rate."""
        converted = CurrencyConverter().convert(Money("11.00", "USD"), "gbp")

        assert converted.currency.code == "GBP"
        assert round_money(converted) == Money("8.50", "GBP")

    def test_money_uses_canonical_currency(self):
        money = CurrencyConverter().money("9.99", "usd")

        assert money == Money("9.99", "USD")

    def test_round_money_half_up(self):
        assert round_money(Money("1442.895", "JPY")) == Money("1442.90", "JPY")

    @pytest.mark.parametrize("currency", SUPPORTED)
    def test_round_trip_within_tolerance(self, currency):
        """Test A -> B -> A conversion stays within a cent."""
        converter = CurrencyConverter()
        amount = Money("49.99", "USD")

        there = converter.convert(amount, currency)
        back = converter.convert(there, "USD")

        assert abs(back - amount) <= Money("0.01", "USD")


class TestPricingCatalog:
    """Tests for PricingCatalog."""

    def test_explicit_prices(self, catalog):
        assert catalog.feature_price("advanced_sso", "USD") == Money("9.99", "USD")
        assert catalog.feature_price("advanced_sso", "EUR") == Money("8.99", "EUR")
        assert catalog.bundle_price("security", "GBP") == Money("19.99", "GBP")

    def test_converted_price_from_eur(self, catalog):
        """Test currencies without explicit prices convert from EUR."""
        assert catalog.feature_price("advanced_sso", "JPY") == Money("1442.90", "JPY")
        assert catalog.feature_price("advanced_sso", "CHF") == Money("8.54", "CHF")

    def test_free_features_cost_nothing(self, catalog):
        assert catalog.feature_price("basic_auth", "USD") == Money("0.00", "USD")
        assert catalog.free_features() == frozenset(
            {"basic_auth", "basic_roles", "basic_reporting"}
        )

    def test_free_feature_still_checks_currency(self, catalog):
        with pytest.raises(InvalidCurrencyError):
            catalog.feature_price("basic_auth", "XYZ")

    def test_tier_prices_per_billing_period(self, catalog):
        """Test quarterly tiers cost three monthly periods."""
        assert catalog.tier_price("premium", "USD") == Money("44.99", "USD")
        assert catalog.tier_price("premium", "USD", BillingPeriod.QUARTERLY) == Money("134.97", "USD")
        assert catalog.tier_price("premium", "USD", BillingPeriod.YEARLY) == Money("449.99", "USD")

    def test_unknown_ids(self, catalog):
        with pytest.raises(InvalidFeatureError):
            catalog.feature("teleportation")
        with pytest.raises(InvalidBundleError):
            catalog.bundle("everything")
        with pytest.raises(InvalidTierError):
            catalog.tier("platinum")

    def test_expand_bundles(self, catalog):
        """Test bundles expand into their member features."""
        covered = catalog.expand(["api_access"], ["security"])

        assert covered == frozenset({"api_access", "advanced_sso", "advanced_policy"})

    def test_bundles_containing(self, catalog):
        assert set(catalog.bundles_containing("advanced_policy")) == {"security", "management"}

    def test_dependencies_satisfied_by_free_features(self, catalog):
        """Test free features always satisfy dependencies."""
        catalog.validate_dependencies(["advanced_sso"], ["advanced_sso"])

    def test_missing_dependency(self, catalog):
        """Test multi_tenant requires custom_roles and advanced_sso."""
        missing = catalog.missing_dependencies(["multi_tenant"], ["multi_tenant", "advanced_sso"])

        assert missing == {"multi_tenant": {"custom_roles"}}
        with pytest.raises(MissingFeatureDependencyError) as exc_info:
            catalog.validate_dependencies(["multi_tenant"], ["multi_tenant"])
        assert "custom_roles" in exc_info.value.message

    def test_bundle_referencing_unknown_feature(self, catalog):
        from catalog.domain.catalog import Bundle, PricingCatalog

        with pytest.raises(ValueError):
            PricingCatalog(
                catalog.features,
                [Bundle(id="broken", name="Broken", features=frozenset({"nope"}))],
                [],
            )
