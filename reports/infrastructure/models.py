"""
Retention policy model.
"""
from django.db import models


class RetentionPolicy(models.Model):
    """Custom report retention of one organization."""

    organization_id = models.CharField(max_length=255, unique=True)
    daily_reports = models.DurationField()
    weekly_reports = models.DurationField()
    monthly_reports = models.DurationField()
    updated_by = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "report_retention_policies"
        ordering = ["organization_id"]

    def __str__(self):
        return f"Retention policy of {self.organization_id}"
