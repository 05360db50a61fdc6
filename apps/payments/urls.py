"""URL routing for payments."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import PaymentStatusView, PaymentWebhookView, ProcessPaymentView

urlpatterns = [
    path("process/", ProcessPaymentView.as_view(), name="payment-process"),
    path("webhook/", PaymentWebhookView.as_view(), name="payment-webhook"),
    path("status/<uuid:booking_id>/", PaymentStatusView.as_view(), name="payment-status"),
]
