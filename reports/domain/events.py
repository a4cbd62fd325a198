"""
Report domain events.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class RetentionPolicyChanged(DomainEvent):
    """Event raised when an organization's retention policy is set or removed."""

    action: str
    old_policy: Optional[Dict[str, Any]] = None
    new_policy: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class ReportsDeleted(DomainEvent):
    """Event raised when the cleanup cycle deletes stored reports."""

    paths: tuple
    period: str
