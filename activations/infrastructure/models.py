"""
Feature activation Django ORM model.

This is the infrastructure layer model for feature activations.
Domain entities are in activations.domain.activation.
"""
import uuid

from django.db import models


class FeatureActivation(models.Model):
    """
    Whether one feature is turned on for one organization.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization_id = models.CharField(max_length=255)
    feature_id = models.CharField(max_length=100)
    active = models.BooleanField(default=True, db_index=True)
    activated_at = models.DateTimeField()
    expires_at = models.DateTimeField(null=True, blank=True)
    payment_id = models.CharField(max_length=255, blank=True)
    currency = models.CharField(max_length=3)
    amount = models.DecimalField(
        max_digits=12, decimal_places=2, help_text="Price of the activated unit"
    )
    source = models.CharField(max_length=120, help_text="Tier, bundle or feature activated")
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "feature_activations"
        unique_together = [["organization_id", "feature_id"]]
        ordering = ["feature_id"]
        indexes = [
            models.Index(fields=["organization_id", "active"]),
        ]

    def __str__(self):
        state = "on" if self.active else "off"
        return f"{self.organization_id}:{self.feature_id} ({state})"
