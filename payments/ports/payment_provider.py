"""
PaymentProvider port.
"""
from abc import ABC, abstractmethod
from decimal import Decimal

from payments.domain.payment import Payment, PaymentMetadata, PaymentResponse


class PaymentProvider(ABC):
    """Port for the external payment provider."""

    @abstractmethod
    async def create_payment(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        metadata: PaymentMetadata,
    ) -> PaymentResponse:
        """
        Create a payment the customer completes at the provider.

        Raises:
            PaymentProviderError: If the provider rejects the call
        """
        pass

    @abstractmethod
    async def get_payment(self, payment_id: str) -> Payment:
        """
        Fetch a payment.

        Raises:
            PaymentNotFoundError: If the provider does not know the payment
            PaymentProviderError: If the provider cannot be reached
        """
        pass
