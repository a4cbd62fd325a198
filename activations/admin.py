"""
Django admin configuration for activations app.
"""

from django.contrib import admin
from django.utils.html import format_html

from activations.infrastructure.models import FeatureActivation


@admin.register(FeatureActivation)
class FeatureActivationAdmin(admin.ModelAdmin):
    """Admin interface for FeatureActivation model."""

    list_display = [
        "organization_id",
        "feature_id",
        "active_display",
        "source",
        "activated_at",
        "expires_at",
    ]
    list_filter = ["active", "feature_id", "activated_at"]
    search_fields = ["organization_id", "feature_id", "payment_id"]
    readonly_fields = ["id", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "organization_id", "feature_id", "active", "source"),
            },
        ),
        (
            "Payment",
            {
                "fields": ("payment_id", "currency", "amount"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("activated_at", "expires_at", "created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def active_display(self, obj):
        """Display active status with color."""
        if obj.active:
            return format_html('<span style="color: green; font-weight: bold;">✓ Active</span>')
        return format_html('<span style="color: red; font-weight: bold;">✗ Inactive</span>')

    active_display.short_description = "Status"
