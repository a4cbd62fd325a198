"""
Serializers for payment API endpoints.
"""

from rest_framework import serializers

from api.v1.licenses.serializers import BILLING_PERIODS
from payments.domain.payment import PURCHASE, RENEWAL


class CreatePaymentRequestSerializer(serializers.Serializer):
    """Serializer for create payment request."""

    currency = serializers.CharField(max_length=3)
    features = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    bundles = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    billing_period = serializers.ChoiceField(choices=BILLING_PERIODS, default="monthly")
    kind = serializers.ChoiceField(choices=[PURCHASE, RENEWAL], default=PURCHASE)
    email = serializers.EmailField(required=False)


class PaymentSerializer(serializers.Serializer):
    """Serializer for PaymentDTO."""

    payment_id = serializers.CharField()
    status = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    checkout_url = serializers.CharField(allow_null=True)


class PaymentWebhookRequestSerializer(serializers.Serializer):
    """The provider only posts the payment ID."""

    id = serializers.CharField(max_length=255)


class PaymentWebhookResultSerializer(serializers.Serializer):
    """Serializer for PaymentWebhookResultDTO."""

    payment_id = serializers.CharField()
    status = serializers.CharField()
    action = serializers.CharField()
    organization_id = serializers.CharField(allow_null=True)
    license_id = serializers.CharField(allow_null=True)
