"""
Activation domain events.

Domain events represent something that happened in the activation domain.
"""

from dataclasses import dataclass
from typing import Tuple

from core.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class FeaturesActivated(DomainEvent):
    """Event raised when a tier, bundle or feature activation completes."""

    target: str
    feature_ids: Tuple[str, ...]


@dataclass(frozen=True, kw_only=True)
class FeaturesDeactivated(DomainEvent):
    """Event raised when features are turned off."""

    target: str
    feature_ids: Tuple[str, ...]
