"""
Usage report value objects.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional


@dataclass(frozen=True)
class FeatureUsageReport:
    """Usage and cost of one feature over a report."""

    feature_id: str
    total_usage: int
    active_sessions: int
    last_used: Optional[datetime]
    cost_per_use: Decimal
    total_cost: Decimal
    license_status: str
    expiration_status: str


@dataclass(frozen=True)
class UsageReport:
    """Usage report of one organization."""

    organization_id: str
    generated_at: datetime
    period: str
    features: Dict[str, FeatureUsageReport] = field(default_factory=dict)
    total_cost: Decimal = Decimal("0.00")

    def to_dict(self) -> dict:
        return {
            "organization_id": self.organization_id,
            "generated_at": self.generated_at,
            "period": self.period,
            "features": {
                feature_id: {
                    "feature_id": item.feature_id,
                    "total_usage": item.total_usage,
                    "active_sessions": item.active_sessions,
                    "last_used": item.last_used,
                    "cost_per_use": item.cost_per_use,
                    "total_cost": item.total_cost,
                    "license_status": item.license_status,
                    "expiration_status": item.expiration_status,
                }
                for feature_id, item in self.features.items()
            },
            "total_cost": self.total_cost,
        }
