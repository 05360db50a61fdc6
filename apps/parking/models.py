"""Parking slot records."""

from __future__ import annotations

from django.db import models  # type: ignore

from shared.domain.value_objects import SlotPosition


class ParkingSlot(models.Model):
    """
    One addressable slot of a venue's grid.

    Rows are created lazily the first time a slot is claimed and kept
    afterwards; ``is_reserved`` and ``booking`` track the current holder.
    """

    venue = models.ForeignKey("venues.Venue", on_delete=models.CASCADE, related_name="parking_slots")
    row = models.PositiveIntegerField()
    column = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=10, decimal_places=2)
    is_reserved = models.BooleanField(default=False)
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="held_slots",
    )
    reserved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["venue", "row", "column"]
        constraints = [
            models.UniqueConstraint(fields=["venue", "row", "column"], name="unique_slot_per_venue"),
        ]
        indexes = [models.Index(fields=["venue", "is_reserved"])]

    def __str__(self) -> str:
        return f"{self.code} @ venue {self.venue_id}"

    @property
    def position(self) -> SlotPosition:
        return SlotPosition(self.row, self.column)

    @property
    def code(self) -> str:
        return self.position.code
