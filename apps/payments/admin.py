"""Admin registration for payments and raw gateway callbacks."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment, PaymentWebhookEvent


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("order_id", "booking", "status", "amount", "currency", "provider", "paid_at", "created_at")
    list_filter = ("status", "provider")
    search_fields = ("order_id", "reference_id", "booking__id", "booking__user__email")
    raw_id_fields = ("booking",)
    readonly_fields = ("order_id", "payment_link", "metadata", "paid_at", "created_at", "updated_at")


@admin.register(PaymentWebhookEvent)
class PaymentWebhookEventAdmin(admin.ModelAdmin):
    list_display = ("order_id", "status", "signature_valid", "processed", "result", "received_at")
    list_filter = ("processed", "result", "signature_valid")
    search_fields = ("order_id",)
    readonly_fields = ("order_id", "payload", "status", "signature_valid", "processed", "result", "received_at")
