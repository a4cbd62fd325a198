"""
ExtendActivationsOnRenewal.

Keeps activation expiry in step with the organization's license.
"""
import logging

from activations.domain.services import FeatureActivationService
from core.domain.events import DomainEvent, EventHandler
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class ExtendActivationsOnRenewal(EventHandler):
    """Moves active activations to the renewed license's expiry."""

    def __init__(
        self,
        activation_service: FeatureActivationService,
        license_repository: LicenseRepository,
    ):
        self.activation_service = activation_service
        self.license_repository = license_repository

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle LicenseRenewed.

        Args:
            event: LicenseRenewed event
        """
        license = await self.license_repository.find_by_organization(event.organization_id)
        if license is None or str(license.id) != event.license_id:
            # A newer license already replaced the renewed one.
            return
        extended = await self.activation_service.extend_for_license(license)
        logger.info(
            "Activations extended",
            extra={
                "organization_id": event.organization_id,
                "license_id": event.license_id,
                "count": extended,
            },
        )
