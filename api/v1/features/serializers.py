"""
Serializers for feature and bundle API endpoints.
"""

from rest_framework import serializers


class ActivationRequestSerializer(serializers.Serializer):
    """
    Serializer for activate and deactivate requests.

    Exactly one of the IDs must be given; the domain rejects anything else.
    """

    tier_id = serializers.CharField(required=False, allow_blank=True)
    bundle_id = serializers.CharField(required=False, allow_blank=True)
    feature_id = serializers.CharField(required=False, allow_blank=True)


class ActivationSerializer(serializers.Serializer):
    """Serializer for ActivationDTO."""

    id = serializers.UUIDField()
    feature_id = serializers.CharField()
    active = serializers.BooleanField()
    activated_at = serializers.DateTimeField()
    expires_at = serializers.DateTimeField(allow_null=True)
    payment_id = serializers.CharField()
    currency = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    source = serializers.CharField()


class ActivationResultSerializer(serializers.Serializer):
    """Serializer for ActivationResultDTO."""

    organization_id = serializers.CharField()
    target = serializers.CharField()
    activations = ActivationSerializer(many=True)
    message = serializers.CharField()


class FeatureStatusSerializer(serializers.Serializer):
    """Serializer for FeatureStatusDTO."""

    feature_id = serializers.CharField()
    active = serializers.BooleanField()
    has_access = serializers.BooleanField()
    activated_at = serializers.DateTimeField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    source = serializers.CharField(allow_null=True)


class FeatureAccessSerializer(serializers.Serializer):
    """Serializer for FeatureAccessDTO."""

    organization_id = serializers.CharField()
    feature_id = serializers.CharField()
    has_access = serializers.BooleanField()
    is_active = serializers.BooleanField()
    in_grace_period = serializers.BooleanField()
    payment_valid = serializers.BooleanField()
    expires_at = serializers.DateTimeField(allow_null=True)
    reason = serializers.CharField(allow_null=True)


class BundleStatusSerializer(serializers.Serializer):
    """Serializer for BundleStatusDTO."""

    bundle_id = serializers.CharField()
    active = serializers.BooleanField()
    features = serializers.DictField(child=FeatureStatusSerializer())
