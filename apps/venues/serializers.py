"""Serializers for venue endpoints."""

from __future__ import annotations

from typing import Any

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.infrastructure.locking import lock_instance

from .models import Venue


class VenueSerializer(serializers.ModelSerializer):
    pricing_mode = serializers.CharField(read_only=True)
    max_slots_per_booking = serializers.IntegerField(read_only=True)

    class Meta:
        model = Venue
        fields = [
            "id",
            "kind",
            "name",
            "location",
            "description",
            "image_url",
            "total_parking_slots",
            "available_parking_slots",
            "slot_price",
            "pricing_mode",
            "max_slots_per_booking",
            "starts_at",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "available_parking_slots", "created_at", "updated_at"]


class VenueWriteSerializer(serializers.ModelSerializer):
    """Admin create/update. The availability counter is never written directly."""

    class Meta:
        model = Venue
        fields = [
            "kind",
            "name",
            "location",
            "description",
            "image_url",
            "total_parking_slots",
            "slot_price",
            "starts_at",
            "is_active",
        ]

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        instance: Venue | None = self.instance
        kind = attrs.get("kind", getattr(instance, "kind", None))
        starts_at = attrs.get("starts_at", getattr(instance, "starts_at", None))

        if kind == Venue.Kind.EVENT and not starts_at:
            raise serializers.ValidationError({"starts_at": "Events require a start date and time."})
        if kind != Venue.Kind.EVENT and starts_at:
            raise serializers.ValidationError({"starts_at": "Only events have a start date and time."})

        if instance is not None and "kind" in attrs and attrs["kind"] != instance.kind:
            if instance.reserved_parking_slots:
                raise serializers.ValidationError({"kind": "Cannot change the kind of a venue with reservations."})

        total = attrs.get("total_parking_slots")
        if instance is not None and total is not None and total < instance.reserved_parking_slots:
            raise serializers.ValidationError(
                {
                    "total_parking_slots": (
                        f"{instance.reserved_parking_slots} slots are reserved; "
                        "total cannot be lower than that."
                    )
                }
            )
        return attrs

    def create(self, validated_data: dict[str, Any]) -> Venue:  # type: ignore
        validated_data["available_parking_slots"] = validated_data["total_parking_slots"]
        return super().create(validated_data)

    @transaction.atomic
    def update(self, instance: Venue, validated_data: dict[str, Any]) -> Venue:  # type: ignore
        # Re-read under lock: a booking may have claimed slots since validate().
        locked = lock_instance(Venue, instance.pk)
        total = validated_data.get("total_parking_slots")
        if total is not None and total != locked.total_parking_slots:
            reserved = locked.reserved_parking_slots
            if total < reserved:
                raise serializers.ValidationError(
                    {"total_parking_slots": f"{reserved} slots are reserved; total cannot be lower than that."}
                )
            # Column count depends on the total, so growing can move slots too.
            self._ensure_reserved_slots_fit(locked, total)
            validated_data["available_parking_slots"] = total - reserved
        return super().update(locked, validated_data)

    def _ensure_reserved_slots_fit(self, venue: Venue, total: int) -> None:
        from apps.parking.domain.grid import GridShape
        from apps.parking.models import ParkingSlot

        grid = GridShape(total, settings.PARKING_MAX_GRID_COLUMNS)
        outside = [
            slot.code
            for slot in ParkingSlot.objects.filter(venue=venue, is_reserved=True)
            if not grid.contains(slot.position)
        ]
        if outside:
            raise serializers.ValidationError(
                {"total_parking_slots": f"Reserved slots would fall outside the grid: {', '.join(outside)}"}
            )

    def to_representation(self, instance: Venue) -> dict[str, Any]:  # type: ignore
        return VenueSerializer(instance, context=self.context).data
