"""
Integration tests for feature and bundle API endpoints.
"""

import pytest
from django.urls import reverse

ORG = {"HTTP_X_ORGANIZATION_ID": "org1"}


@pytest.fixture
def licensed(api_client, django_container):
    """Fixture activating a security bundle license for org1."""
    response = api_client.post(
        reverse("activate-license"),
        {
            "payment_id": "tr_1",
            "amount": "34.98",
            "currency": "USD",
            "billing_period": "monthly",
            "features": ["api_access"],
            "bundles": ["security"],
        },
        format="json",
        **ORG,
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.django_db
@pytest.mark.integration
class TestFeatureActivationAPI:
    """Integration tests for activating and deactivating features."""

    def test_license_activation_turns_features_on(self, api_client, licensed):
        response = api_client.get(reverse("bundle-status", args=["security"]), **ORG)

        assert response.status_code == 200
        data = response.json()
        assert data["active"] is True
        assert set(data["features"]) == {"advanced_sso", "advanced_policy"}
        assert data["features"]["advanced_sso"]["source"] == "bundle:security"

    def test_deactivate_and_reactivate_feature(self, api_client, licensed):
        """Test one bundle member toggles independently."""
        response = api_client.post(
            reverse("deactivate-features"), {"feature_id": "advanced_policy"}, format="json", **ORG
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Deactivated 1 feature(s)"

        status = api_client.get(reverse("feature-status", args=["advanced_policy"]), **ORG).json()
        assert status["active"] is False
        assert status["has_access"] is True
        bundle = api_client.get(reverse("bundle-status", args=["security"]), **ORG).json()
        assert bundle["active"] is False

        response = api_client.post(
            reverse("activate-features"), {"bundle_id": "security"}, format="json", **ORG
        )
        assert response.status_code == 200
        data = response.json()
        assert data["target"] == "bundle:security"
        assert len(data["activations"]) == 2
        assert all(a["active"] for a in data["activations"])

    def test_activate_uncovered_feature(self, api_client, licensed):
        response = api_client.post(
            reverse("activate-features"), {"feature_id": "multi_tenant"}, format="json", **ORG
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FEATURE_NOT_ALLOWED"

    def test_activate_without_license(self, api_client, django_container):
        response = api_client.post(
            reverse("activate-features"), {"feature_id": "advanced_sso"}, format="json", **ORG
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "LICENSE_REQUIRED"

    @pytest.mark.parametrize(
        "body",
        [{}, {"feature_id": "advanced_sso", "bundle_id": "security"}],
    )
    def test_target_must_be_single(self, api_client, licensed, body):
        response = api_client.post(reverse("activate-features"), body, format="json", **ORG)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ACTIVATION_TARGET"

    def test_tier_cannot_be_deactivated(self, api_client, licensed):
        response = api_client.post(
            reverse("deactivate-features"), {"tier_id": "premium"}, format="json", **ORG
        )

        assert response.status_code == 400


@pytest.mark.django_db
@pytest.mark.integration
class TestFeatureAccessAPI:
    """Integration tests for feature access checks."""

    def test_granted(self, api_client, licensed):
        response = api_client.get(reverse("feature-access", args=["api_access"]), **ORG)

        assert response.status_code == 200
        data = response.json()
        assert data["has_access"] is True
        assert data["payment_valid"] is True

    def test_denied_with_reason(self, api_client, licensed):
        response = api_client.get(reverse("feature-access", args=["multi_tenant"]), **ORG)

        assert response.status_code == 200
        data = response.json()
        assert data["has_access"] is False
        assert data["reason"] == "feature_not_licensed"

    def test_no_license(self, api_client, django_container):
        response = api_client.get(reverse("feature-access", args=["advanced_sso"]), **ORG)

        assert response.status_code == 200
        assert response.json()["has_access"] is False

    def test_unknown_feature(self, api_client, django_container):
        response = api_client.get(reverse("feature-status", args=["teleportation"]), **ORG)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_FEATURE"

    def test_unknown_bundle(self, api_client, django_container):
        response = api_client.get(reverse("bundle-status", args=["everything"]), **ORG)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_BUNDLE"
