"""
URL configuration for feature and bundle API endpoints.
"""

from django.urls import path

from api.v1.features import views

urlpatterns = [
    path("features/activate", views.ActivateFeaturesView.as_view(), name="activate-features"),
    path("features/deactivate", views.DeactivateFeaturesView.as_view(), name="deactivate-features"),
    path(
        "features/<str:feature_id>/status",
        views.FeatureStatusView.as_view(),
        name="feature-status",
    ),
    path(
        "features/<str:feature_id>/access",
        views.FeatureAccessView.as_view(),
        name="feature-access",
    ),
    path(
        "bundles/<str:bundle_id>/status",
        views.BundleStatusView.as_view(),
        name="bundle-status",
    ),
]
