"""
Serializers for license API endpoints.
"""

from rest_framework import serializers

from core.domain.value_objects import BillingPeriod

BILLING_PERIODS = [period.value for period in BillingPeriod]


class DurationRequestMixin(serializers.Serializer):
    """Accepts either a billing period or an explicit number of days."""

    billing_period = serializers.ChoiceField(choices=BILLING_PERIODS, required=False)
    duration_days = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):
        """Require exactly one way of expressing the duration."""
        if ("billing_period" in attrs) == ("duration_days" in attrs):
            raise serializers.ValidationError(
                "Exactly one of billing_period or duration_days is required"
            )
        return attrs


class ActivateLicenseRequestSerializer(DurationRequestMixin):
    """Serializer for activate license request."""

    payment_id = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField(max_length=3)
    features = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    bundles = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class RenewLicenseRequestSerializer(DurationRequestMixin):
    """Serializer for renew license request."""

    payment_id = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField(max_length=3)


class BulkRenewLicensesRequestSerializer(DurationRequestMixin):
    """Serializer for bulk renewal request."""

    organization_ids = serializers.ListField(
        child=serializers.CharField(max_length=255), min_length=1
    )
    payment_id = serializers.CharField(max_length=255)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField(max_length=3)


class LicenseSerializer(serializers.Serializer):
    """Serializer for LicenseDTO."""

    id = serializers.UUIDField()
    organization_id = serializers.CharField()
    features = serializers.ListField(child=serializers.CharField())
    bundles = serializers.ListField(child=serializers.CharField())
    status = serializers.CharField()
    issued_at = serializers.DateTimeField()
    expires_at = serializers.DateTimeField()
    payment_id = serializers.CharField()
    currency = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class PricingSerializer(serializers.Serializer):
    """Serializer for PricingDTO."""

    currency = serializers.CharField()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    feature_prices = serializers.DictField(
        child=serializers.DecimalField(max_digits=12, decimal_places=2)
    )
    bundle_prices = serializers.DictField(
        child=serializers.DecimalField(max_digits=12, decimal_places=2)
    )


class LicenseStatusSerializer(serializers.Serializer):
    """Serializer for LicenseStatusDTO."""

    organization_id = serializers.CharField()
    is_active = serializers.BooleanField()
    status = serializers.CharField()
    expires_at = serializers.DateTimeField()
    active_features = serializers.ListField(child=serializers.CharField())
    active_bundles = serializers.ListField(child=serializers.CharField())
    payment_status = serializers.CharField()
    pricing = PricingSerializer(allow_null=True)
    feature_access = serializers.DictField(child=serializers.BooleanField())


class RenewalStatusSerializer(serializers.Serializer):
    """Serializer for RenewalStatusDTO."""

    organization_id = serializers.CharField()
    needs_renewal = serializers.BooleanField()
    in_grace_period = serializers.BooleanField()
    payment_required = serializers.BooleanField()
    renewal_available = serializers.BooleanField()
    priority = serializers.CharField()
    days_until_expiry = serializers.IntegerField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    message = serializers.CharField(allow_blank=True)


class BulkRenewalFailureSerializer(serializers.Serializer):
    organization_id = serializers.CharField()
    code = serializers.CharField()
    message = serializers.CharField()


class BulkRenewalSerializer(serializers.Serializer):
    """Serializer for BulkRenewalDTO."""

    currency = serializers.CharField()
    total_required = serializers.DecimalField(max_digits=12, decimal_places=2)
    succeeded = LicenseSerializer(many=True)
    failed = BulkRenewalFailureSerializer(many=True)
