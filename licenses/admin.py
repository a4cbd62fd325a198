"""
Django admin configuration for licenses app.
"""
from django.contrib import admin
from django.utils.html import format_html

from licenses.infrastructure.models import License


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    """Admin interface for License model."""

    list_display = [
        "organization_id",
        "status_display",
        "currency",
        "amount",
        "payment_id",
        "expires_at",
        "is_current",
    ]
    list_filter = ["status", "currency", "expires_at", "issued_at"]
    search_fields = ["organization_id", "payment_id"]
    readonly_fields = ["id", "superseded_at", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "organization_id", "status", "features", "bundles"),
            },
        ),
        (
            "Payment",
            {
                "fields": ("payment_id", "currency", "amount"),
            },
        ),
        (
            "Validity",
            {
                "fields": ("issued_at", "expires_at", "superseded_at"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            "active": "green",
            "expired": "gray",
            "canceled": "red",
        }
        color = colors.get(obj.status, "black")
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            obj.status.upper(),
        )

    status_display.short_description = "Status"

    def is_current(self, obj):
        return obj.superseded_at is None

    is_current.boolean = True
    is_current.short_description = "Current"
