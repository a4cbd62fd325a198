"""
Mollie implementation of PaymentProvider port.

Talks to the Mollie v2 REST API with requests. Calls are blocking and run
in a worker thread.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import requests
from asgiref.sync import sync_to_async
from django.utils.dateparse import parse_datetime

from core.domain.exceptions import PaymentNotFoundError, PaymentProviderError
from payments.domain.payment import Payment, PaymentMetadata, PaymentResponse, PaymentStatus
from payments.ports.payment_provider import PaymentProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.mollie.com/v2"


class MolliePaymentProvider(PaymentProvider):
    """PaymentProvider backed by Mollie."""

    def __init__(
        self,
        api_key: str,
        redirect_url: str,
        webhook_url: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ValueError("Mollie API key is required")
        self.api_key = api_key
        self.redirect_url = redirect_url
        self.webhook_url = webhook_url
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": "Enterprise-Entitlement-Service/1.0",
        }

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, json=payload, headers=self._headers(), timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Mollie request failed: {method} {path} - {e}")
            raise PaymentProviderError(f"Payment provider unreachable: {e}") from e

        if response.status_code == 404:
            raise PaymentNotFoundError(f"Payment provider has no resource at {path}")
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.warning(
                f"Mollie request rejected: {method} {path} - {response.status_code}",
                extra={"response": response.text[:500]},
            )
            raise PaymentProviderError(f"Payment provider rejected request: {e}") from e
        try:
            return response.json()
        except ValueError as e:
            raise PaymentProviderError("Payment provider returned invalid JSON") from e

    @staticmethod
    def format_amount(amount: Decimal) -> str:
        return f"{Decimal(amount):.2f}"

    def _to_payment(self, data: Dict[str, Any]) -> Payment:
        amount = data.get("amount") or {}
        try:
            value = Decimal(amount.get("value", "0"))
            status = PaymentStatus(data.get("status"))
        except (InvalidOperation, ValueError) as e:
            raise PaymentProviderError(f"Unexpected payment payload: {e}") from e
        created_at = data.get("createdAt")
        paid_at = data.get("paidAt")
        return Payment(
            id=data["id"],
            status=status,
            amount=value,
            currency=amount.get("currency", ""),
            description=data.get("description", ""),
            metadata=PaymentMetadata.from_dict(data.get("metadata")),
            created_at=parse_datetime(created_at) if created_at else None,
            paid_at=parse_datetime(paid_at) if paid_at else None,
        )

    @sync_to_async
    def create_payment(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        metadata: PaymentMetadata,
    ) -> PaymentResponse:
        payload = {
            "amount": {"currency": currency, "value": self.format_amount(amount)},
            "description": description,
            "redirectUrl": self.redirect_url,
            "webhookUrl": self.webhook_url,
            "metadata": metadata.to_dict(),
        }
        data = self._request("POST", "/payments", payload)
        checkout = ((data.get("_links") or {}).get("checkout") or {}).get("href")
        logger.info(
            "Payment created",
            extra={
                "payment_id": data.get("id"),
                "organization_id": metadata.organization_id,
                "amount": payload["amount"]["value"],
                "currency": currency,
            },
        )
        return PaymentResponse(
            id=data["id"],
            status=PaymentStatus(data.get("status", "open")),
            redirect_url=checkout,
        )

    @sync_to_async
    def get_payment(self, payment_id: str) -> Payment:
        return self._to_payment(self._request("GET", f"/payments/{payment_id}"))
