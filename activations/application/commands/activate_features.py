"""
ActivateFeaturesCommand and DeactivateFeaturesCommand.

Commands to turn a tier, bundle or feature on or off for an organization.
"""

from dataclasses import dataclass

from core.domain.value_objects import ActivationTarget


@dataclass
class ActivateFeaturesCommand:
    """Command to activate a tier, bundle or feature."""

    organization_id: str
    target: ActivationTarget


@dataclass
class DeactivateFeaturesCommand:
    """Command to deactivate a bundle or feature."""

    organization_id: str
    target: ActivationTarget
