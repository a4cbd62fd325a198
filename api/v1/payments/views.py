"""
Payment API views.

These endpoints are used to:
- Start a checkout for a license purchase or renewal
- Receive payment status webhooks from the provider
"""

import logging

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.common import ERROR_RESPONSES, IDENTITY_PARAMETERS, require_identity
from api.v1.payments.serializers import (
    CreatePaymentRequestSerializer,
    PaymentSerializer,
    PaymentWebhookRequestSerializer,
    PaymentWebhookResultSerializer,
)
from core.container import get_container
from core.instrumentation import Status, StatusCode, get_tracer
from payments.application.commands.payment_commands import (
    InitiatePaymentCommand,
    PaymentWebhookCommand,
)

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


class CreatePaymentView(APIView):
    """View for starting a payment."""

    @extend_schema(
        operation_id="create_payment",
        summary="Create Payment",
        description=(
            "Price the requested features and bundles (or the current license for a "
            "renewal) and create a provider payment. Returns the checkout URL."
        ),
        tags=["Payments"],
        parameters=IDENTITY_PARAMETERS,
        request=CreatePaymentRequestSerializer,
        responses={201: PaymentSerializer, 502: {"description": "Payment provider error"}, **ERROR_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        """Create a payment."""
        return async_to_sync(self._handle_create)(request)

    async def _handle_create(self, request: Request) -> Response:
        with tracer.start_as_current_span("create_payment") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)

            serializer = CreatePaymentRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data
            span.set_attribute("payment.kind", data["kind"])

            result = await get_container().initiate_payment_handler.handle(
                InitiatePaymentCommand(
                    organization_id=identity.organization_id,
                    currency=data["currency"],
                    features=data["features"],
                    bundles=data["bundles"],
                    billing_period=data["billing_period"],
                    kind=data["kind"],
                    recipient=data.get("email"),
                )
            )
            span.set_attribute("payment.id", result.payment_id)
            span.set_status(Status(StatusCode.OK))
            return Response(PaymentSerializer(result).data, status=status.HTTP_201_CREATED)


class PaymentWebhookView(APIView):
    """
    View receiving provider webhooks.

    The body only carries the payment ID; the payment itself is fetched
    from the provider, so the call needs no organization header.
    """

    parser_classes = [FormParser, JSONParser]

    @extend_schema(
        operation_id="payment_webhook",
        summary="Payment Webhook",
        tags=["Payments"],
        request=PaymentWebhookRequestSerializer,
        responses={200: PaymentWebhookResultSerializer, 502: {"description": "Payment provider error"}, **ERROR_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        """Apply a payment status change."""
        return async_to_sync(self._handle_webhook)(request)

    async def _handle_webhook(self, request: Request) -> Response:
        with tracer.start_as_current_span("payment_webhook") as span:
            serializer = PaymentWebhookRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            payment_id = serializer.validated_data["id"]
            span.set_attribute("payment.id", payment_id)

            result = await get_container().payment_webhook_handler.handle(
                PaymentWebhookCommand(payment_id=payment_id)
            )
            span.set_attribute("payment.status", result.status)
            span.set_attribute("webhook.action", result.action)
            logger.info(
                "Payment webhook processed",
                extra={"payment_id": payment_id, "status": result.status, "action": result.action},
            )
            return Response(PaymentWebhookResultSerializer(result).data)
