"""
Django admin configuration for reports app.
"""
from django.contrib import admin

from reports.infrastructure.models import RetentionPolicy


@admin.register(RetentionPolicy)
class RetentionPolicyAdmin(admin.ModelAdmin):
    """Admin interface for RetentionPolicy model."""

    list_display = [
        "organization_id",
        "daily_reports",
        "weekly_reports",
        "monthly_reports",
        "updated_by",
        "updated_at",
    ]
    search_fields = ["organization_id", "updated_by"]
    readonly_fields = ["created_at", "updated_at"]
