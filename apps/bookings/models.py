"""Booking domain models for Time2Park."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .exceptions import BookingStateError

QR_PREFIX = "TIME2PARK-BOOKING-"


def generate_qr_token(booking_id) -> str:
    return f"{QR_PREFIX}{booking_id}"


class Booking(models.Model):
    """Reservation of one or more parking slots at a venue."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAYMENT_PENDING = "payment_pending", _("Awaiting payment")
        CONFIRMED = "confirmed", _("Confirmed")
        PAYMENT_FAILED = "payment_failed", _("Payment failed")
        EXPIRED = "expired", _("Expired")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    # Statuses holding slots that have not been paid for yet.
    HOLD_STATUSES = (Status.PENDING, Status.PAYMENT_PENDING)

    TRANSITIONS = {
        Status.PENDING: {
            Status.PAYMENT_PENDING,
            Status.CONFIRMED,
            Status.PAYMENT_FAILED,
            Status.EXPIRED,
            Status.CANCELLED,
        },
        Status.PAYMENT_PENDING: {
            Status.CONFIRMED,
            Status.PAYMENT_FAILED,
            Status.EXPIRED,
            Status.CANCELLED,
        },
        Status.CONFIRMED: {Status.CANCELLED, Status.COMPLETED},
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    venue = models.ForeignKey(
        "venues.Venue",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    status = models.CharField(
        max_length=32,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    starts_at = models.DateTimeField(null=True, blank=True)
    ends_at = models.DateTimeField(null=True, blank=True)
    hours = models.PositiveIntegerField(default=1)
    payment_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="INR")
    qr_code = models.CharField(max_length=64, unique=True, editable=False)
    hold_expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Unpaid bookings release their slots after this moment."),
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "hold_expires_at"]),
            models.Index(fields=["venue", "status"]),
        ]

    def __str__(self) -> str:
        return f"Booking {self.pk} ({self.status}) at venue {self.venue_id}"

    def save(self, *args, **kwargs):  # type: ignore
        if not self.qr_code:
            self.qr_code = generate_qr_token(self.pk)
        super().save(*args, **kwargs)

    @property
    def is_hold(self) -> bool:
        return self.status in self.HOLD_STATUSES

    @property
    def slot_codes(self) -> list[str]:
        return [link.slot.code for link in self.slots.all()]

    def can_transition_to(self, status: str) -> bool:
        return status in self.TRANSITIONS.get(self.status, set())

    def transition_to(self, status: str, **fields) -> None:
        """Move to ``status`` and persist it together with ``fields``.

        Raises:
            BookingStateError: the move is not allowed from the current status
        """
        if not self.can_transition_to(status):
            raise BookingStateError(f"Booking is {self.status}; cannot become {status}.")
        self.status = status
        for name, value in fields.items():
            setattr(self, name, value)
        self.save(update_fields=["status", "updated_at", *fields.keys()])

    def hold_has_expired(self, now=None) -> bool:
        if not self.is_hold or not self.hold_expires_at:
            return False
        return self.hold_expires_at <= (now or timezone.now())


class BookingSlot(models.Model):
    """A parking slot sold as part of a booking; tracks customer arrival."""

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="slots")
    slot = models.ForeignKey("parking.ParkingSlot", on_delete=models.CASCADE, related_name="booking_links")
    price = models.DecimalField(max_digits=10, decimal_places=2)
    customer_arrived = models.BooleanField(default=False)
    arrived_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["slot__row", "slot__column"]
        constraints = [
            models.UniqueConstraint(fields=["booking", "slot"], name="unique_slot_per_booking"),
        ]

    def __str__(self) -> str:
        return f"{self.slot.code} for booking {self.booking_id}"

    @property
    def code(self) -> str:
        return self.slot.code

    def mark_arrived(self, now=None) -> bool:
        """Record arrival. Returns False when it was already recorded."""
        if self.customer_arrived:
            return False
        self.customer_arrived = True
        self.arrived_at = now or timezone.now()
        self.save(update_fields=["customer_arrived", "arrived_at"])
        return True
