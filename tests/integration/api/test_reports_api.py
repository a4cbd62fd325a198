"""
Integration tests for report retention API endpoints.
"""

import pytest
from django.urls import reverse

from reports.infrastructure.models import RetentionPolicy as RetentionPolicyModel

ORG = {"HTTP_X_ORGANIZATION_ID": "org1", "HTTP_X_USER_ID": "admin"}


@pytest.mark.django_db
@pytest.mark.integration
class TestRetentionPolicyAPI:
    """Integration tests for the retention policy endpoint."""

    def test_default_policy(self, api_client, django_container):
        response = api_client.get(reverse("retention-policy"), **ORG)

        assert response.status_code == 200
        data = response.json()
        assert data["custom"] is False
        assert data["daily_reports"] == "7 00:00:00"
        assert data["weekly_reports"] == "30 00:00:00"
        assert data["monthly_reports"] == "365 00:00:00"

    def test_set_get_remove(self, api_client, django_container):
        """Test a custom policy is stored, read back and removed."""
        body = {
            "daily_reports": "2 00:00:00",
            "weekly_reports": "14 00:00:00",
            "monthly_reports": "90 00:00:00",
        }

        response = api_client.put(reverse("retention-policy"), body, format="json", **ORG)
        assert response.status_code == 200
        assert response.json()["custom"] is True
        assert RetentionPolicyModel.objects.get(organization_id="org1").updated_by == "admin"

        data = api_client.get(reverse("retention-policy"), **ORG).json()
        assert data["custom"] is True
        assert data["daily_reports"] == "2 00:00:00"

        response = api_client.delete(reverse("retention-policy"), **ORG)
        assert response.status_code == 204
        assert api_client.get(reverse("retention-policy"), **ORG).json()["custom"] is False

    def test_below_minimum(self, api_client, django_container):
        body = {
            "daily_reports": "12:00:00",
            "weekly_reports": "14 00:00:00",
            "monthly_reports": "90 00:00:00",
        }

        response = api_client.put(reverse("retention-policy"), body, format="json", **ORG)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_RETENTION_POLICY"
        assert not RetentionPolicyModel.objects.filter(organization_id="org1").exists()

    def test_malformed_duration(self, api_client, django_container):
        response = api_client.put(
            reverse("retention-policy"), {"daily_reports": "a week"}, format="json", **ORG
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_requires_organization(self, api_client, django_container):
        response = api_client.get(reverse("retention-policy"))

        assert response.status_code == 400
