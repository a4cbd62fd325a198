"""
License status handlers.

Handlers for GetLicenseStatusQuery and GetRenewalStatusQuery.
"""
from core.domain.exceptions import LicenseNotFoundError, ValidationError, repository_failures
from licenses.application.dto.license_dto import LicenseStatusDTO, PricingDTO, RenewalStatusDTO
from licenses.application.queries.get_license_status import (
    GetLicenseStatusQuery,
    GetRenewalStatusQuery,
)
from licenses.domain.resolver import EntitlementResolver


class GetLicenseStatusHandler:
    """Handler for GetLicenseStatusQuery."""

    def __init__(self, resolver: EntitlementResolver):
        """Initialize handler with the entitlement resolver."""
        self.resolver = resolver

    async def handle(self, query: GetLicenseStatusQuery) -> LicenseStatusDTO:
        """
        Handle get license status query.

        Args:
            query: GetLicenseStatusQuery

        Returns:
            LicenseStatusDTO with payment state, pricing and per-feature access

        Raises:
            LicenseNotFoundError: If the organization has no license
        """
        with repository_failures("load license"):
            license = await self.resolver.license_repository.find_by_organization(
                query.organization_id
            )
        if license is None:
            raise LicenseNotFoundError(f"No license found for organization {query.organization_id}")

        now = self.resolver.clock()
        validator = self.resolver.validator
        try:
            pricing = PricingDTO.from_details(
                validator.calculate_pricing(license.features, license.bundles, license.currency)
            )
        except ValidationError:
            pricing = None

        return LicenseStatusDTO(
            organization_id=license.organization_id,
            is_active=license.is_valid(now),
            status=license.status.value,
            expires_at=license.expires_at,
            active_features=sorted(license.features),
            active_bundles=sorted(license.bundles),
            payment_status="valid" if validator.is_payment_valid(license) else "invalid",
            pricing=pricing,
            feature_access=self.resolver.feature_access_map(license, now),
        )


class GetRenewalStatusHandler:
    """Handler for GetRenewalStatusQuery."""

    def __init__(self, resolver: EntitlementResolver):
        """Initialize handler with the entitlement resolver."""
        self.resolver = resolver

    async def handle(self, query: GetRenewalStatusQuery) -> RenewalStatusDTO:
        """
        Handle get renewal status query.

        A missing license is reported as needing a purchase, not as an error.
        """
        with repository_failures("load renewal status"):
            status = await self.resolver.get_renewal_status(query.organization_id)
        return RenewalStatusDTO(
            organization_id=status.organization_id,
            needs_renewal=status.needs_renewal,
            in_grace_period=status.in_grace_period,
            payment_required=status.payment_required,
            renewal_available=status.renewal_available,
            priority=status.priority.value,
            days_until_expiry=status.days_until_expiry,
            expires_at=status.expires_at,
            message=status.message,
        )
