"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingSlot


class BookingSlotInline(admin.TabularInline):
    model = BookingSlot
    extra = 0
    fields = ("slot", "price", "customer_arrived", "arrived_at")
    readonly_fields = ("slot", "price")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "venue",
        "user",
        "status",
        "starts_at",
        "ends_at",
        "payment_amount",
        "hold_expires_at",
        "created_at",
    )
    list_filter = ("status", "venue__kind")
    search_fields = ("id", "qr_code", "venue__name", "user__email")
    readonly_fields = (
        "qr_code",
        "payment_amount",
        "hold_expires_at",
        "confirmed_at",
        "completed_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    inlines = [BookingSlotInline]
