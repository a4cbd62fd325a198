"""
RenewLicenseCommand and BulkRenewLicensesCommand.

Commands to renew one or several licenses from a payment.
"""
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import List


@dataclass
class RenewLicenseCommand:
    """Command to renew an organization's license."""

    organization_id: str
    payment_id: str
    amount: Decimal
    currency: str
    duration: timedelta


@dataclass
class BulkRenewLicensesCommand:
    """Command to renew several organizations from one payment."""

    organization_ids: List[str]
    payment_id: str
    total_amount: Decimal
    currency: str
    duration: timedelta
