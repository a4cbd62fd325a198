"""
Serializers for report retention endpoints.
"""

from rest_framework import serializers


class RetentionPolicySerializer(serializers.Serializer):
    """
    Serializer for RetentionPolicy.

    Durations use Django's "[DD] [HH:[MM:]]ss" notation, e.g. "7 00:00:00".
    """

    daily_reports = serializers.DurationField()
    weekly_reports = serializers.DurationField()
    monthly_reports = serializers.DurationField()


class RetentionPolicyResponseSerializer(RetentionPolicySerializer):
    organization_id = serializers.CharField()
    custom = serializers.BooleanField()
