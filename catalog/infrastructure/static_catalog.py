"""
Built-in catalog content.

Monthly prices are listed for EUR, USD and GBP; other currencies are
converted from EUR.
"""
from typing import Optional

from moneyed import Money

from catalog.domain.catalog import Bundle, Feature, FeatureTier, PricingCatalog, Tier
from catalog.domain.currency import CurrencyConverter


def _prices(eur: str, usd: str, gbp: str) -> dict:
    return {"EUR": Money(eur, "EUR"), "USD": Money(usd, "USD"), "GBP": Money(gbp, "GBP")}


FEATURES = (
    Feature(
        id="basic_auth",
        name="Basic Authentication",
        tier=FeatureTier.FREE,
        description="Username and password sign-in",
    ),
    Feature(
        id="basic_roles",
        name="Basic Roles",
        tier=FeatureTier.FREE,
        description="Built-in admin and member roles",
    ),
    Feature(
        id="basic_reporting",
        name="Basic Reporting",
        tier=FeatureTier.FREE,
        description="Standard activity reports",
    ),
    Feature(
        id="advanced_sso",
        name="Advanced SSO",
        tier=FeatureTier.ENTERPRISE,
        prices=_prices("8.99", "9.99", "7.99"),
        description="SAML and OIDC single sign-on",
        dependencies=("basic_auth",),
    ),
    Feature(
        id="custom_roles",
        name="Custom Roles",
        tier=FeatureTier.ENTERPRISE,
        prices=_prices("13.99", "14.99", "11.99"),
        description="Fine-grained custom role definitions",
        dependencies=("basic_roles",),
    ),
    Feature(
        id="advanced_reporting",
        name="Advanced Reporting",
        tier=FeatureTier.PREMIUM,
        prices=_prices("17.99", "19.99", "15.99"),
        description="Custom dashboards and scheduled exports",
        dependencies=("basic_reporting",),
    ),
    Feature(
        id="multi_tenant",
        name="Multi-Tenant Management",
        tier=FeatureTier.ENTERPRISE,
        prices=_prices("44.99", "49.99", "39.99"),
        description="Manage several tenants from one organization",
        dependencies=("custom_roles", "advanced_sso"),
    ),
    Feature(
        id="directory_sync",
        name="Directory Sync",
        tier=FeatureTier.ENTERPRISE,
        prices=_prices("26.99", "29.99", "23.99"),
        description="SCIM user provisioning",
        dependencies=("advanced_sso",),
    ),
    Feature(
        id="advanced_audit",
        name="Advanced Audit Logs",
        tier=FeatureTier.ENTERPRISE,
        prices=_prices("22.99", "24.99", "19.99"),
        description="Long-term audit log retention and export",
    ),
    Feature(
        id="advanced_policy",
        name="Advanced Policies",
        tier=FeatureTier.ENTERPRISE,
        prices=_prices("17.99", "19.99", "15.99"),
        description="Conditional access and session policies",
    ),
    Feature(
        id="emergency_access",
        name="Emergency Access",
        tier=FeatureTier.PREMIUM,
        prices=_prices("8.99", "9.99", "7.99"),
        description="Break-glass administrator accounts",
    ),
    Feature(
        id="api_access",
        name="API Access",
        tier=FeatureTier.PREMIUM,
        prices=_prices("13.99", "14.99", "11.99"),
        description="Programmatic access to the management API",
    ),
)

BUNDLES = (
    Bundle(
        id="security",
        name="Security Bundle",
        features=frozenset({"advanced_sso", "advanced_policy"}),
        prices=_prices("22.99", "24.99", "19.99"),
        description="Single sign-on with access policies",
    ),
    Bundle(
        id="management",
        name="Management Bundle",
        features=frozenset({"multi_tenant", "advanced_policy", "custom_roles", "advanced_sso"}),
        prices=_prices("71.99", "79.99", "63.99"),
        description="Multi-tenant administration",
    ),
    Bundle(
        id="compliance",
        name="Compliance Bundle",
        features=frozenset({"advanced_audit", "advanced_reporting"}),
        prices=_prices("35.99", "39.99", "31.99"),
        description="Audit and reporting for regulated teams",
    ),
)

_FREE = frozenset({"basic_auth", "basic_roles", "basic_reporting"})
_PREMIUM = _FREE | {"advanced_reporting", "emergency_access", "api_access"}
_ENTERPRISE = _PREMIUM | {
    "advanced_sso",
    "custom_roles",
    "multi_tenant",
    "directory_sync",
    "advanced_audit",
    "advanced_policy",
}

TIERS = (
    Tier(id="free", name="Free", features=_FREE),
    Tier(
        id="premium",
        name="Premium",
        features=_PREMIUM,
        monthly_prices=_prices("39.99", "44.99", "34.99"),
        yearly_prices=_prices("399.99", "449.99", "349.99"),
    ),
    Tier(
        id="enterprise",
        name="Enterprise",
        features=_ENTERPRISE,
        monthly_prices=_prices("179.99", "199.99", "159.99"),
        yearly_prices=_prices("1799.99", "1999.99", "1599.99"),
    ),
)


def build_default_catalog(converter: Optional[CurrencyConverter] = None) -> PricingCatalog:
    """Return the built-in catalog."""
    return PricingCatalog(FEATURES, BUNDLES, TIERS, converter=converter)
