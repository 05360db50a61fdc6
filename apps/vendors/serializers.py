"""Serializers for vendor dashboards and check-in."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.models import BookingSlot
from apps.venues.models import Venue


class VendorVenueStatsSerializer(serializers.ModelSerializer):
    total_bookings = serializers.IntegerField(read_only=True)
    arrived_customers = serializers.IntegerField(read_only=True)

    class Meta:
        model = Venue
        fields = ["id", "name", "kind", "starts_at", "location", "total_bookings", "arrived_customers"]
        read_only_fields = fields


class VendorBookingSlotSerializer(serializers.ModelSerializer):
    """A sold slot as the gate staff sees it."""

    booking_id = serializers.UUIDField(source="booking.pk", read_only=True)
    code = serializers.CharField(source="slot.code", read_only=True)
    row = serializers.IntegerField(source="slot.row", read_only=True)
    column = serializers.IntegerField(source="slot.column", read_only=True)
    customer_name = serializers.SerializerMethodField()
    customer_email = serializers.EmailField(source="booking.user.email", read_only=True)
    qr_code = serializers.CharField(source="booking.qr_code", read_only=True)

    class Meta:
        model = BookingSlot
        fields = [
            "id",
            "booking_id",
            "code",
            "row",
            "column",
            "customer_name",
            "customer_email",
            "customer_arrived",
            "arrived_at",
            "qr_code",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj: BookingSlot) -> str:
        user = obj.booking.user
        return user.full_name or user.email


class QRCheckInSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=128, trim_whitespace=True)
