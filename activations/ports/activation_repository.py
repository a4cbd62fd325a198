"""
Activation repository port (interface).

This defines the contract for feature activation persistence.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from activations.domain.activation import FeatureActivation


class ActivationRepository(ABC):
    """
    Abstract repository for FeatureActivation entities.

    Activations are keyed by (organization, feature); there is at most
    one row per pair.
    """

    @abstractmethod
    async def save(self, activation: FeatureActivation) -> FeatureActivation:
        """
        Insert or replace the activation for its organization and feature.

        Args:
            activation: FeatureActivation entity to save

        Returns:
            Saved activation entity
        """
        pass

    @abstractmethod
    async def find(self, organization_id: str, feature_id: str) -> Optional[FeatureActivation]:
        """
        Find the activation of one feature.

        Args:
            organization_id: Organization ID
            feature_id: Feature ID

        Returns:
            FeatureActivation or None if the feature was never activated
        """
        pass

    @abstractmethod
    async def list_active(self, organization_id: str) -> List[FeatureActivation]:
        """
        List all active activations of an organization.

        Args:
            organization_id: Organization ID

        Returns:
            List of active FeatureActivation entities
        """
        pass

    @abstractmethod
    async def list_by_organization(self, organization_id: str) -> List[FeatureActivation]:
        """
        List all activations of an organization, active or not.

        Args:
            organization_id: Organization ID

        Returns:
            List of FeatureActivation entities
        """
        pass
