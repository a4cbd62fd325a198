"""
License model.
"""
import uuid

from django.db import models


class License(models.Model):
    """
    What an organization paid for and until when.

    Exactly one row per organization has superseded_at unset; renewals
    insert a new row and stamp the previous one.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("expired", "Expired"),
        ("canceled", "Canceled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization_id = models.CharField(max_length=255, db_index=True)
    features = models.JSONField(default=list)
    bundles = models.JSONField(default=list)
    issued_at = models.DateTimeField()
    expires_at = models.DateTimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    payment_id = models.CharField(max_length=255)
    currency = models.CharField(max_length=3)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    superseded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "licenses"
        ordering = ["-issued_at"]
        indexes = [
            models.Index(fields=["organization_id", "superseded_at"]),
            models.Index(fields=["status", "expires_at"]),
            models.Index(fields=["payment_id"]),
        ]

    def __str__(self):
        return f"{self.organization_id} - {self.status} until {self.expires_at:%Y-%m-%d}"

    @property
    def is_current(self) -> bool:
        return self.superseded_at is None
