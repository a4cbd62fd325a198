"""
In-memory implementation of PaymentProvider port.

Used by tests and local development. Payments are created open and their
status is changed with set_status, standing in for the customer paying at
the provider.
"""
import threading
import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Dict

from django.utils import timezone

from core.domain.exceptions import PaymentNotFoundError
from payments.domain.payment import Payment, PaymentMetadata, PaymentResponse, PaymentStatus
from payments.ports.payment_provider import PaymentProvider


class InMemoryPaymentProvider(PaymentProvider):
    """Dictionary-backed PaymentProvider."""

    def __init__(self, checkout_base_url: str = "http://localhost:8000/checkout"):
        self._lock = threading.Lock()
        self._payments: Dict[str, Payment] = {}
        self.checkout_base_url = checkout_base_url.rstrip("/")

    async def create_payment(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        metadata: PaymentMetadata,
    ) -> PaymentResponse:
        payment = Payment(
            id=f"tr_{uuid.uuid4().hex[:10]}",
            status=PaymentStatus.OPEN,
            amount=Decimal(amount),
            currency=currency,
            description=description,
            metadata=metadata,
            created_at=timezone.now(),
        )
        self.add(payment)
        return PaymentResponse(
            id=payment.id,
            status=payment.status,
            redirect_url=f"{self.checkout_base_url}/{payment.id}",
        )

    async def get_payment(self, payment_id: str) -> Payment:
        with self._lock:
            payment = self._payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(f"Payment {payment_id} not found")
        return payment

    def add(self, payment: Payment) -> Payment:
        with self._lock:
            self._payments[payment.id] = payment
        return payment

    def set_status(self, payment_id: str, status: PaymentStatus) -> Payment:
        with self._lock:
            payment = self._payments.get(payment_id)
            if payment is None:
                raise PaymentNotFoundError(f"Payment {payment_id} not found")
            paid_at = timezone.now() if status == PaymentStatus.PAID else payment.paid_at
            payment = replace(payment, status=status, paid_at=paid_at)
            self._payments[payment_id] = payment
        return payment
