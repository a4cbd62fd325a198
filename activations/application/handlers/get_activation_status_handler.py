"""
Activation status handlers.
"""

from activations.application.dto.activation_dto import (
    BundleStatusDTO,
    FeatureAccessDTO,
    FeatureStatusDTO,
)
from activations.application.queries.get_activation_status import (
    GetBundleStatusQuery,
    GetFeatureAccessQuery,
    GetFeatureStatusQuery,
)
from activations.domain.services import FeatureActivationService
from core.domain.exceptions import repository_failures
from licenses.domain.resolver import EntitlementResolver


class GetFeatureStatusHandler:
    """Handler for GetFeatureStatusQuery."""

    def __init__(self, activation_service: FeatureActivationService):
        self.activation_service = activation_service

    async def handle(self, query: GetFeatureStatusQuery) -> FeatureStatusDTO:
        status = await self.activation_service.feature_status(
            query.organization_id, query.feature_id
        )
        return FeatureStatusDTO.from_status(status)


class GetFeatureAccessHandler:
    """
    Handler for GetFeatureAccessQuery.

    A granted check counts as one use of the feature.
    """

    def __init__(self, resolver: EntitlementResolver):
        self.resolver = resolver

    async def handle(self, query: GetFeatureAccessQuery) -> FeatureAccessDTO:
        """
        Handle feature access query.

        Args:
            query: GetFeatureAccessQuery

        Returns:
            FeatureAccessDTO with the decision and its reason

        Raises:
            InvalidFeatureError: If the feature is unknown
        """
        self.resolver.catalog.feature(query.feature_id)
        with repository_failures("check feature access"):
            status = await self.resolver.check_access(query.organization_id, query.feature_id)
        return FeatureAccessDTO.from_status(query.organization_id, query.feature_id, status)


class GetBundleStatusHandler:
    """Handler for GetBundleStatusQuery."""

    def __init__(self, activation_service: FeatureActivationService):
        self.activation_service = activation_service

    async def handle(self, query: GetBundleStatusQuery) -> BundleStatusDTO:
        status = await self.activation_service.bundle_status(query.organization_id, query.bundle_id)
        return BundleStatusDTO.from_status(status)
