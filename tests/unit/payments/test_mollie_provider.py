"""
Unit tests for MolliePaymentProvider.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from core.domain.exceptions import PaymentNotFoundError, PaymentProviderError
from payments.domain.payment import PaymentMetadata, PaymentStatus
from payments.infrastructure.mollie_provider import MolliePaymentProvider

PAYMENT_PAYLOAD = {
    "id": "tr_WDqYK6vllg",
    "status": "paid",
    "amount": {"currency": "EUR", "value": "8.99"},
    "description": "Enterprise license purchase for org1 (monthly)",
    "createdAt": "2026-01-15T12:00:00+00:00",
    "paidAt": "2026-01-15T12:05:00+00:00",
    "metadata": {
        "organization_id": "org1",
        "features": ["advanced_sso"],
        "bundles": [],
        "billing_period": "monthly",
        "kind": "purchase",
        "recipient": None,
    },
    "_links": {"checkout": {"href": "https://www.mollie.com/checkout/tr_WDqYK6vllg"}},
}


def response(status_code=200, payload=None):
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = payload
    mock.text = ""
    if status_code >= 400:
        mock.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    return mock


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def provider(session):
    return MolliePaymentProvider(
        api_key="test_key",
        redirect_url="https://app.example.com/billing/done",
        webhook_url="https://api.example.com/api/v1/payments/webhook/",
        base_url="https://api.mollie.test/v2/",
        session=session,
    )


class TestMolliePaymentProvider:
    """Tests for MolliePaymentProvider."""

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            MolliePaymentProvider(api_key="", redirect_url="", webhook_url="")

    @pytest.mark.asyncio
    async def test_create_payment(self, provider, session):
        """Test the request payload and the checkout link."""
        session.request.return_value = response(
            201, {**PAYMENT_PAYLOAD, "status": "open"}
        )

        result = await provider.create_payment(
            Decimal("8.9"),
            "EUR",
            "Enterprise license purchase for org1 (monthly)",
            PaymentMetadata(organization_id="org1", features=("advanced_sso",)),
        )

        assert result.id == "tr_WDqYK6vllg"
        assert result.status == PaymentStatus.OPEN
        assert result.redirect_url == "https://www.mollie.com/checkout/tr_WDqYK6vllg"
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert (method, url) == ("POST", "https://api.mollie.test/v2/payments")
        assert kwargs["json"]["amount"] == {"currency": "EUR", "value": "8.90"}
        assert kwargs["json"]["webhookUrl"] == "https://api.example.com/api/v1/payments/webhook/"
        assert kwargs["json"]["metadata"]["features"] == ["advanced_sso"]
        assert kwargs["headers"]["Authorization"] == "Bearer test_key"
        assert kwargs["timeout"] == 10.0

    @pytest.mark.asyncio
    async def test_get_payment(self, provider, session):
        session.request.return_value = response(200, PAYMENT_PAYLOAD)

        payment = await provider.get_payment("tr_WDqYK6vllg")

        assert payment.status == PaymentStatus.PAID
        assert payment.amount == Decimal("8.99")
        assert payment.currency == "EUR"
        assert payment.metadata.organization_id == "org1"
        assert payment.metadata.features == ("advanced_sso",)
        assert payment.paid_at.minute == 5
        assert session.request.call_args.args == (
            "GET",
            "https://api.mollie.test/v2/payments/tr_WDqYK6vllg",
        )

    @pytest.mark.asyncio
    async def test_not_found(self, provider, session):
        session.request.return_value = response(404, {"status": 404})

        with pytest.raises(PaymentNotFoundError):
            await provider.get_payment("tr_missing")

    @pytest.mark.asyncio
    async def test_server_error(self, provider, session):
        session.request.return_value = response(500, {})

        with pytest.raises(PaymentProviderError):
            await provider.get_payment("tr_WDqYK6vllg")

    @pytest.mark.asyncio
    async def test_unreachable(self, provider, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(PaymentProviderError):
            await provider.get_payment("tr_WDqYK6vllg")

    @pytest.mark.asyncio
    async def test_unexpected_status(self, provider, session):
        session.request.return_value = response(200, {**PAYMENT_PAYLOAD, "status": "teleported"})

        with pytest.raises(PaymentProviderError):
            await provider.get_payment("tr_WDqYK6vllg")
