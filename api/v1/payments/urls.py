"""
URL configuration for payment API endpoints.
"""

from django.urls import path

from api.v1.payments import views

urlpatterns = [
    path("", views.CreatePaymentView.as_view(), name="create-payment"),
    path("webhook", views.PaymentWebhookView.as_view(), name="payment-webhook"),
]
