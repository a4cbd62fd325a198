"""
Activation handlers.

Handlers for ActivateFeaturesCommand and DeactivateFeaturesCommand.
"""

from activations.application.commands.activate_features import (
    ActivateFeaturesCommand,
    DeactivateFeaturesCommand,
)
from activations.application.dto.activation_dto import ActivationDTO, ActivationResultDTO
from activations.domain.services import FeatureActivationService
from core.domain.value_objects import validate_organization_id


def _require_organization(organization_id: str) -> None:
    validate_organization_id(organization_id)


class ActivateFeaturesHandler:
    """Handler for ActivateFeaturesCommand."""

    def __init__(self, activation_service: FeatureActivationService):
        """Initialize handler with the activation service."""
        self.activation_service = activation_service

    async def handle(self, command: ActivateFeaturesCommand) -> ActivationResultDTO:
        """
        Handle activate features command.

        Args:
            command: ActivateFeaturesCommand

        Returns:
            ActivationResultDTO listing one activation per member feature

        Raises:
            LicenseRequiredError: If the organization has no valid license
            FeatureNotAllowedError: If the license does not cover the target
            MissingFeatureDependencyError: If dependencies are not covered
        """
        _require_organization(command.organization_id)
        activations = await self.activation_service.activate(
            command.organization_id, command.target
        )
        return ActivationResultDTO(
            organization_id=command.organization_id,
            target=str(command.target),
            activations=[ActivationDTO.from_entity(a) for a in activations],
            message=f"Activated {len(activations)} feature(s)",
        )


class DeactivateFeaturesHandler:
    """Handler for DeactivateFeaturesCommand."""

    def __init__(self, activation_service: FeatureActivationService):
        """Initialize handler with the activation service."""
        self.activation_service = activation_service

    async def handle(self, command: DeactivateFeaturesCommand) -> ActivationResultDTO:
        """
        Handle deactivate features command.

        Raises:
            InvalidActivationTargetError: If the target is a tier
        """
        _require_organization(command.organization_id)
        deactivated = await self.activation_service.deactivate(
            command.organization_id, command.target
        )
        return ActivationResultDTO(
            organization_id=command.organization_id,
            target=str(command.target),
            activations=[ActivationDTO.from_entity(a) for a in deactivated],
            message=f"Deactivated {len(deactivated)} feature(s)",
        )
