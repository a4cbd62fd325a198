"""
Usage statistics value object.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class FeatureUsageStats:
    """Usage counters for one feature of one organization."""

    feature_id: str
    usage_count: int = 0
    active_sessions: int = 0
    last_used: Optional[datetime] = None
