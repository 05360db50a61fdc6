"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.venues.models import Venue

from .models import Booking, BookingSlot


class BookingCreateSerializer(serializers.Serializer):
    """Booking request from a customer."""

    venue = serializers.PrimaryKeyRelatedField(queryset=Venue.objects.active())
    slots = serializers.ListField(
        child=serializers.CharField(max_length=16),
        allow_empty=False,
        help_text="Slot codes such as R1C3",
    )
    starts_at = serializers.DateTimeField(required=False, allow_null=True)
    ends_at = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, attrs):  # type: ignore
        venue: Venue = attrs["venue"]
        if not venue.is_event:
            if not attrs.get("starts_at") or not attrs.get("ends_at"):
                raise serializers.ValidationError("Start and end time are required for this venue.")
            if attrs["starts_at"] >= attrs["ends_at"]:
                raise serializers.ValidationError({"ends_at": "End time must be after start time."})
        return attrs


class VenueSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Venue
        fields = ["id", "kind", "name", "location", "image_url", "starts_at"]


class BookingSlotSerializer(serializers.ModelSerializer):
    code = serializers.CharField(source="slot.code", read_only=True)
    row = serializers.IntegerField(source="slot.row", read_only=True)
    column = serializers.IntegerField(source="slot.column", read_only=True)

    class Meta:
        model = BookingSlot
        fields = ["id", "code", "row", "column", "price", "customer_arrived", "arrived_at"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    venue = VenueSummarySerializer(read_only=True)
    slots = BookingSlotSerializer(many=True, read_only=True)
    slot_codes = serializers.ListField(child=serializers.CharField(), read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "venue",
            "status",
            "starts_at",
            "ends_at",
            "hours",
            "payment_amount",
            "currency",
            "qr_code",
            "hold_expires_at",
            "slots",
            "slot_codes",
            "confirmed_at",
            "cancelled_at",
            "cancellation_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True, max_length=255, default="")
