"""
Payment DTOs for API responses.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class PaymentDTO:
    """DTO for a created payment."""

    payment_id: str
    status: str
    amount: Decimal
    currency: str
    checkout_url: Optional[str]


@dataclass
class PaymentWebhookResultDTO:
    """DTO for the outcome of a webhook."""

    payment_id: str
    status: str
    action: str
    organization_id: Optional[str] = None
    license_id: Optional[str] = None
