"""
URL configuration for report retention endpoints.
"""

from django.urls import path

from api.v1.reports import views

urlpatterns = [
    path("retention-policy", views.RetentionPolicyView.as_view(), name="retention-policy"),
]
