"""
Report storage and retention policy ports.
"""
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import List, Optional

from core.domain.value_objects import ExportFormat
from reports.domain.retention import RetentionPolicy


class ReportStorage(ABC):
    """Port where generated reports are kept."""

    @abstractmethod
    async def store(self, organization_id: str, content: str, export_format: ExportFormat) -> str:
        """
        Store a report.

        Returns:
            Path of the stored report
        """
        pass

    @abstractmethod
    async def list(self, organization_id: str) -> List[str]:
        """List stored report paths of an organization."""
        pass

    @abstractmethod
    async def delete(self, path: str) -> None:
        pass

    @abstractmethod
    async def file_age(self, path: str) -> timedelta:
        """Return how long ago a stored report was written."""
        pass


class RetentionPolicyRepository(ABC):
    """Port for per-organization retention policies."""

    @abstractmethod
    async def find(self, organization_id: str) -> Optional[RetentionPolicy]:
        pass

    @abstractmethod
    async def save(
        self, organization_id: str, policy: RetentionPolicy, updated_by: Optional[str] = None
    ) -> RetentionPolicy:
        pass

    @abstractmethod
    async def delete(self, organization_id: str) -> bool:
        """
        Remove an organization's policy.

        Returns:
            True if a policy was removed
        """
        pass
