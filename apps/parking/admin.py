"""Admin registrations for parking slots."""

from __future__ import annotations

from django.contrib import admin

from .models import ParkingSlot


@admin.register(ParkingSlot)
class ParkingSlotAdmin(admin.ModelAdmin):
    list_display = ("venue", "code", "price", "is_reserved", "booking", "reserved_at")
    list_filter = ("is_reserved", "venue__kind")
    search_fields = ("venue__name",)
    raw_id_fields = ("venue", "booking")
