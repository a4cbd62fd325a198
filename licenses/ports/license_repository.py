"""
License repository port (interface).

This defines the contract for license persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from licenses.domain.license import License


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    Each organization has one current license. Saving a license with a
    new ID for an organization supersedes the previous current one;
    superseded licenses are kept for history.
    """

    @abstractmethod
    async def save(self, license: License) -> License:
        """
        Save a license entity as the organization's current license.

        Args:
            license: License entity to save

        Returns:
            Saved license entity
        """
        pass

    @abstractmethod
    async def find_by_organization(self, organization_id: str) -> Optional[License]:
        """
        Find the current license of an organization.

        Args:
            organization_id: Organization ID

        Returns:
            License entity or None if the organization has none
        """
        pass

    @abstractmethod
    async def list_current(self) -> List[License]:
        """
        List the current license of every organization.

        Returns:
            List of License entities
        """
        pass

    @abstractmethod
    async def find_overdue(self, now: datetime) -> List[License]:
        """
        Find current licenses still marked active but past their expiry.

        Args:
            now: Reference time

        Returns:
            List of License entities
        """
        pass

    @abstractmethod
    async def history(self, organization_id: str) -> List[License]:
        """
        List all licenses ever issued to an organization, newest first.

        Args:
            organization_id: Organization ID

        Returns:
            List of License entities
        """
        pass
