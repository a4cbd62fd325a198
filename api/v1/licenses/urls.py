"""
URL configuration for license API endpoints.
"""

from django.urls import path

from api.v1.licenses import views

urlpatterns = [
    path("activate", views.ActivateLicenseView.as_view(), name="activate-license"),
    path("status", views.LicenseStatusView.as_view(), name="license-status"),
    path("renewal-status", views.RenewalStatusView.as_view(), name="renewal-status"),
    path("renew", views.RenewLicenseView.as_view(), name="renew-license"),
    path("renew/bulk", views.BulkRenewLicensesView.as_view(), name="bulk-renew-licenses"),
    path("usage-report", views.UsageReportView.as_view(), name="usage-report"),
]
