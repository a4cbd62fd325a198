"""
ExpireOverdueLicensesHandler.

Persists the active -> expired transition for licenses past their expiry.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from django.utils import timezone

from core.domain.events import EventBus
from core.domain.exceptions import repository_failures
from core.infrastructure.locks import OrganizationLocks
from licenses.domain.events import LicenseExpired
from licenses.domain.license import License
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class ExpireOverdueLicensesHandler:
    """Marks overdue active licenses as expired."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        locks: OrganizationLocks,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.license_repository = license_repository
        self.locks = locks
        self.event_bus = event_bus
        self.clock = clock

    async def handle(self, dry_run: bool = False) -> List[License]:
        """
        Expire every overdue license.

        A license renewed between the scan and its update is left alone.

        Args:
            dry_run: Only report what would be expired

        Returns:
            Licenses that were (or would be) expired
        """
        now = self.clock()
        with repository_failures("find overdue licenses"):
            overdue = await self.license_repository.find_overdue(now)
        if dry_run:
            return overdue

        expired = []
        for candidate in overdue:
            async with self.locks.hold(candidate.organization_id):
                with repository_failures("load license"):
                    current = await self.license_repository.find_by_organization(
                        candidate.organization_id
                    )
                if current is None or current.id != candidate.id or not current.is_active:
                    continue
                if not current.is_expired(now):
                    continue
                with repository_failures("save expired license"):
                    saved = await self.license_repository.save(current.expire())
            expired.append(saved)
            logger.info(
                "License expired",
                extra={"organization_id": saved.organization_id, "license_id": str(saved.id)},
            )
            if self.event_bus is not None:
                await self.event_bus.publish(
                    LicenseExpired(
                        organization_id=saved.organization_id,
                        license_id=str(saved.id),
                        expired_at=saved.expires_at,
                    )
                )
        return expired
