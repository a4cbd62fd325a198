"""
Unit tests for request middleware helpers.
"""

from django.http import HttpResponse
from django.test import RequestFactory

from core.middleware.identity import IdentityMiddleware
from core.middleware.metrics import normalize_endpoint
from core.middleware.tracing import sanitize


class TestIdentityMiddleware:
    """Tests for IdentityMiddleware."""

    def _run(self, **headers):
        captured = {}

        def get_response(request):
            captured["identity"] = request.identity
            return HttpResponse()

        request = RequestFactory().get("/api/v1/licenses/status", **headers)
        IdentityMiddleware(get_response)(request)
        return captured["identity"]

    def test_reads_identity_headers(self):
        """Test organization and user are taken from headers."""
        identity = self._run(HTTP_X_ORGANIZATION_ID="org1", HTTP_X_USER_ID="user7")

        assert identity.organization_id == "org1"
        assert identity.user_id == "user7"

    def test_missing_organization(self):
        """Test requests without an organization carry no identity."""
        assert self._run() is None

    def test_blank_organization(self):
        assert self._run(HTTP_X_ORGANIZATION_ID="   ") is None

    def test_malformed_organization(self):
        """Test a malformed organization ID is kept as an error, not an identity."""
        captured = {}

        def get_response(request):
            captured["request"] = request
            return HttpResponse()

        request = RequestFactory().get("/", HTTP_X_ORGANIZATION_ID="../org1")
        IdentityMiddleware(get_response)(request)

        assert captured["request"].identity is None
        assert captured["request"].identity_error.code == "INVALID_ORGANIZATION_ID"


class TestNormalizeEndpoint:
    """Tests for metrics endpoint normalization."""

    def test_feature_ids_collapsed(self):
        assert (
            normalize_endpoint("/api/v1/features/advanced_sso/status")
            == "/api/v1/features/{id}/status"
        )

    def test_uuid_and_numbers_collapsed(self):
        path = "/api/v1/things/123e4567-e89b-12d3-a456-426614174000/items/42"

        assert normalize_endpoint(path) == "/api/v1/things/{id}/items/{id}"

    def test_query_string_dropped(self):
        assert normalize_endpoint("/api/v1/licenses/usage-report?format=csv") == (
            "/api/v1/licenses/usage-report"
        )


class TestSanitize:
    """Tests for request body sanitization in traces."""

    def test_redacts_sensitive_fields(self):
        data = sanitize({"api_key": "abc", "payment_id": "tr_1", "nested": {"token": "t"}})

        assert data["api_key"] == "***REDACTED***"
        assert data["payment_id"] == "tr_1"
        assert data["nested"]["token"] == "***REDACTED***"

    def test_depth_is_bounded(self):
        assert sanitize({"a": {"b": {"c": {"d": 1}}}})["a"]["b"]["c"] == "..."
