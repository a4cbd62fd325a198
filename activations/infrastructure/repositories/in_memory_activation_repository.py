"""
In-memory implementation of ActivationRepository port.
"""
import threading
from typing import Dict, List, Optional, Tuple

from activations.domain.activation import FeatureActivation
from activations.ports.activation_repository import ActivationRepository


class InMemoryActivationRepository(ActivationRepository):
    """Dictionary-backed ActivationRepository keyed by (organization, feature)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: Dict[Tuple[str, str], FeatureActivation] = {}

    async def save(self, activation: FeatureActivation) -> FeatureActivation:
        with self._lock:
            self._rows[(activation.organization_id, activation.feature_id)] = activation
        return activation

    async def find(self, organization_id: str, feature_id: str) -> Optional[FeatureActivation]:
        with self._lock:
            return self._rows.get((organization_id, feature_id))

    async def list_active(self, organization_id: str) -> List[FeatureActivation]:
        return [row for row in await self.list_by_organization(organization_id) if row.active]

    async def list_by_organization(self, organization_id: str) -> List[FeatureActivation]:
        with self._lock:
            rows = [row for (org, _), row in self._rows.items() if org == organization_id]
        return sorted(rows, key=lambda row: row.feature_id)
