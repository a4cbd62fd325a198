"""
ActivateLicenseCommand.

Command to create a paid license for an organization.
"""
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import List


@dataclass
class ActivateLicenseCommand:
    """Command to activate a license funded by a payment."""

    organization_id: str
    payment_id: str
    amount: Decimal
    currency: str
    duration: timedelta
    features: List[str] = field(default_factory=list)
    bundles: List[str] = field(default_factory=list)
