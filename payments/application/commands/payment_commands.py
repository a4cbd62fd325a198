"""
InitiatePaymentCommand and PaymentWebhookCommand.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from payments.domain.payment import PURCHASE


@dataclass
class InitiatePaymentCommand:
    """Command to create a provider payment for a purchase or renewal."""

    organization_id: str
    currency: str
    features: List[str] = field(default_factory=list)
    bundles: List[str] = field(default_factory=list)
    billing_period: str = "monthly"
    kind: str = PURCHASE
    recipient: Optional[str] = None


@dataclass
class PaymentWebhookCommand:
    """Command carrying a provider webhook notification."""

    payment_id: str
