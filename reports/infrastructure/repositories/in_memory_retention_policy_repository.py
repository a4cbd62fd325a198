"""
In-memory implementation of RetentionPolicyRepository port.
"""
import threading
from typing import Dict, Optional

from reports.domain.retention import RetentionPolicy
from reports.ports.report_storage import RetentionPolicyRepository


class InMemoryRetentionPolicyRepository(RetentionPolicyRepository):
    """Dictionary-backed RetentionPolicyRepository."""

    def __init__(self):
        self._lock = threading.Lock()
        self._policies: Dict[str, RetentionPolicy] = {}

    async def find(self, organization_id: str) -> Optional[RetentionPolicy]:
        with self._lock:
            return self._policies.get(organization_id)

    async def save(
        self, organization_id: str, policy: RetentionPolicy, updated_by: Optional[str] = None
    ) -> RetentionPolicy:
        with self._lock:
            self._policies[organization_id] = policy
        return policy

    async def delete(self, organization_id: str) -> bool:
        with self._lock:
            return self._policies.pop(organization_id, None) is not None
