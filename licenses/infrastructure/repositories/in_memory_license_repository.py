"""
In-memory implementation of LicenseRepository port.

Used by tests and by processes that run without a database. All access
goes through one lock, so concurrent organizations never see a partial
update.
"""
import threading
from datetime import datetime
from typing import Dict, List, Optional

from core.domain.value_objects import LicenseStatus
from licenses.domain.license import License
from licenses.ports.license_repository import LicenseRepository


class InMemoryLicenseRepository(LicenseRepository):
    """Dictionary-backed LicenseRepository."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Dict[str, License] = {}
        self._history: Dict[str, List[License]] = {}

    async def save(self, license: License) -> License:
        with self._lock:
            records = self._history.setdefault(license.organization_id, [])
            records[:] = [record for record in records if record.id != license.id]
            records.append(license)
            self._current[license.organization_id] = license
        return license

    async def find_by_organization(self, organization_id: str) -> Optional[License]:
        with self._lock:
            return self._current.get(organization_id)

    async def list_current(self) -> List[License]:
        with self._lock:
            return [self._current[key] for key in sorted(self._current)]

    async def find_overdue(self, now: datetime) -> List[License]:
        with self._lock:
            return [
                license
                for license in self._current.values()
                if license.status == LicenseStatus.ACTIVE and license.expires_at < now
            ]

    async def history(self, organization_id: str) -> List[License]:
        with self._lock:
            records = list(self._history.get(organization_id, []))
        return sorted(records, key=lambda license: license.issued_at, reverse=True)
