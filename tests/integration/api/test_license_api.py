"""
Integration tests for License API endpoints.
"""

import pytest
from django.urls import reverse

ORG = {"HTTP_X_ORGANIZATION_ID": "org1", "HTTP_X_USER_ID": "admin"}


def activate(api_client, **overrides):
    body = {
        "payment_id": "tr_1",
        "amount": "9.99",
        "currency": "USD",
        "billing_period": "monthly",
        "features": ["advanced_sso"],
    }
    body.update(overrides)
    body = {key: value for key, value in body.items() if value is not None}
    return api_client.post(reverse("activate-license"), body, format="json", **ORG)


@pytest.mark.django_db
@pytest.mark.integration
class TestActivateLicenseAPI:
    """Integration tests for license activation."""

    def test_activate_license_success(self, api_client, django_container):
        """Test successful license activation via API."""
        response = activate(api_client)

        assert response.status_code == 201
        data = response.json()
        assert data["organization_id"] == "org1"
        assert data["features"] == ["advanced_sso"]
        assert data["status"] == "active"
        assert data["amount"] == "9.99"

    def test_activate_with_duration_days(self, api_client, django_container):
        response = activate(api_client, billing_period=None, duration_days=14)

        assert response.status_code == 201

    def test_missing_organization_header(self, api_client, django_container):
        response = api_client.post(
            reverse("activate-license"),
            {"payment_id": "tr_1", "amount": "9.99", "currency": "USD", "billing_period": "monthly"},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ORGANIZATION_ID"

    def test_malformed_organization_header(self, api_client, django_container):
        """Test an organization ID that is not a plain slug is rejected."""
        response = api_client.post(
            reverse("activate-license"),
            {"payment_id": "tr_1", "amount": "9.99", "currency": "USD", "billing_period": "monthly"},
            format="json",
            HTTP_X_ORGANIZATION_ID="x/../../escaped",
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_ORGANIZATION_ID"
        assert "Malformed" in error["message"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"duration_days": 30},
            {"billing_period": None},
            {"billing_period": "weekly"},
            {"amount": "abc"},
        ],
    )
    def test_invalid_body(self, api_client, django_container, overrides):
        """Test the request body is validated before anything is stored."""
        response = activate(api_client, **overrides)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_insufficient_payment(self, api_client, django_container):
        response = activate(api_client, amount="5.00")

        assert response.status_code == 402
        assert response.json()["error"]["code"] == "INSUFFICIENT_PAYMENT"

    def test_unknown_feature(self, api_client, django_container):
        response = activate(api_client, features=["teleportation"])

        assert response.status_code == 400
        assert "error" in response.json()


@pytest.mark.django_db
@pytest.mark.integration
class TestLicenseStatusAPI:
    """Integration tests for license and renewal status."""

    def test_license_status(self, api_client, django_container):
        activate(api_client)

        response = api_client.get(reverse("license-status"), **ORG)

        assert response.status_code == 200
        data = response.json()
        assert data["is_active"] is True
        assert data["payment_status"] == "valid"
        assert data["pricing"]["total_amount"] == "9.99"
        assert data["feature_access"]["advanced_sso"] is True
        assert data["feature_access"]["basic_auth"] is True

    def test_license_status_not_found(self, api_client, django_container):
        response = api_client.get(reverse("license-status"), **ORG)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "LICENSE_NOT_FOUND"

    def test_renewal_status(self, api_client, django_container):
        activate(api_client, billing_period=None, duration_days=5)

        response = api_client.get(reverse("renewal-status"), **ORG)

        assert response.status_code == 200
        data = response.json()
        assert data["needs_renewal"] is True
        assert data["priority"] == "high"
        assert data["days_until_expiry"] in (4, 5)

    def test_renewal_status_without_license(self, api_client, django_container):
        response = api_client.get(reverse("renewal-status"), **ORG)

        assert response.status_code == 200
        assert response.json()["priority"] == "critical"


@pytest.mark.django_db
@pytest.mark.integration
class TestRenewLicenseAPI:
    """Integration tests for renewals."""

    def test_renew(self, api_client, django_container):
        activate(api_client, billing_period=None, duration_days=3)

        response = api_client.post(
            reverse("renew-license"),
            {"payment_id": "tr_2", "amount": "8.99", "currency": "EUR", "billing_period": "monthly"},
            format="json",
            **ORG,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["payment_id"] == "tr_2"
        assert data["currency"] == "EUR"

    def test_renew_without_license(self, api_client, django_container):
        response = api_client.post(
            reverse("renew-license"),
            {"payment_id": "tr_2", "amount": "9.99", "currency": "USD", "duration_days": 30},
            format="json",
            **ORG,
        )

        assert response.status_code == 404

    def test_bulk_renew(self, api_client, django_container):
        """Test bulk renewal reports per-organization failures."""
        activate(api_client)

        response = api_client.post(
            reverse("bulk-renew-licenses"),
            {
                "organization_ids": ["org1", "ghost"],
                "payment_id": "tr_bulk",
                "total_amount": "9.99",
                "currency": "USD",
                "billing_period": "monthly",
            },
            format="json",
        )

        assert response.status_code == 200
        data = response.json()
        assert [lic["organization_id"] for lic in data["succeeded"]] == ["org1"]
        assert data["failed"][0]["organization_id"] == "ghost"
        assert data["total_required"] == "9.99"

    def test_bulk_renew_underfunded(self, api_client, django_container):
        activate(api_client)

        response = api_client.post(
            reverse("bulk-renew-licenses"),
            {
                "organization_ids": ["org1"],
                "payment_id": "tr_bulk",
                "total_amount": "1.00",
                "currency": "USD",
                "duration_days": 30,
            },
            format="json",
        )

        assert response.status_code == 402


@pytest.mark.django_db
@pytest.mark.integration
class TestUsageReportAPI:
    """Integration tests for usage report downloads."""

    def test_csv_report(self, api_client, django_container):
        activate(api_client)
        api_client.get(reverse("feature-access", args=["advanced_sso"]), **ORG)

        response = api_client.get(
            reverse("usage-report"), {"format": "csv", "period": "weekly"}, **ORG
        )

        assert response.status_code == 200
        assert response["Content-Type"].startswith("text/csv")
        assert response["Content-Disposition"] == 'attachment; filename="usage-report-org1.csv"'
        lines = response.content.decode().splitlines()
        assert lines[0].startswith("Feature ID,Total Usage")
        assert lines[1].startswith("advanced_sso,1,1,")
        assert lines[-1] == "TOTAL,,,,,9.99,,"

    def test_json_report_default(self, api_client, django_container):
        activate(api_client)

        response = api_client.get(reverse("usage-report"), **ORG)

        assert response.status_code == 200
        assert response.json()["period"] == "monthly"

    @pytest.mark.parametrize(
        "params,code",
        [
            ({"format": "xml"}, "UNSUPPORTED_FORMAT"),
            ({"period": "hourly"}, "INVALID_REPORT_PERIOD"),
        ],
    )
    def test_invalid_params(self, api_client, django_container, params, code):
        activate(api_client)

        response = api_client.get(reverse("usage-report"), params, **ORG)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == code
