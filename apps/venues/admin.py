"""Admin registrations for venues."""

from __future__ import annotations

from django.contrib import admin

from .models import Venue


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "kind",
        "location",
        "starts_at",
        "total_parking_slots",
        "available_parking_slots",
        "slot_price",
        "is_active",
    )
    list_filter = ("kind", "is_active")
    search_fields = ("name", "location")
    readonly_fields = ("available_parking_slots", "created_at", "updated_at")
    ordering = ("kind", "starts_at", "name")

    def save_model(self, request, obj, form, change):  # type: ignore
        if not change:
            obj.available_parking_slots = obj.total_parking_slots
        super().save_model(request, obj, form, change)
