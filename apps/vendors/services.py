"""Queries and check-in helpers behind the vendor screens."""

from __future__ import annotations

import logging
import uuid

from django.db.models import Count, Q  # type: ignore

from apps.bookings.models import Booking, BookingSlot
from apps.bookings.qr import extract_booking_reference
from apps.venues.models import Venue

logger = logging.getLogger(__name__)


def venue_stats(kind: str | None = None):
    """
    Active venues annotated with booked and arrived slot counts.

    Only slots of confirmed bookings are counted.
    """
    confirmed = Q(bookings__status=Booking.Status.CONFIRMED)
    qs = Venue.objects.active().annotate(
        total_bookings=Count("bookings__slots", filter=confirmed),
        arrived_customers=Count(
            "bookings__slots",
            filter=confirmed & Q(bookings__slots__customer_arrived=True),
        ),
    )
    if kind:
        qs = qs.filter(kind=kind)
    return qs.order_by("kind", "starts_at", "name")


def booked_slots(venue: Venue):
    """Slots of confirmed bookings at ``venue``, in grid order."""

    return (
        BookingSlot.objects.filter(booking__venue=venue, booking__status=Booking.Status.CONFIRMED)
        .select_related("slot", "booking", "booking__user")
        .order_by("slot__row", "slot__column")
    )


def _as_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


def find_booking_by_scan(scanned: str) -> Booking:
    """
    Resolve a scanned QR value to a booking.

    Accepts ``TIME2PARK-BOOKING-<uuid>``, a bare booking id or the stored
    token itself.

    Raises:
        Booking.DoesNotExist: nothing matches
    """
    reference = extract_booking_reference(scanned)
    if not reference:
        raise Booking.DoesNotExist("Empty QR code")

    lookup = Q(qr_code__iexact=scanned.strip())
    booking_id = _as_uuid(reference)
    if booking_id is not None:
        lookup |= Q(pk=booking_id)

    booking = Booking.objects.select_related("venue", "user").filter(lookup).first()
    if booking is None:
        logger.warning(f"QR check-in with unknown code {scanned!r}")
        raise Booking.DoesNotExist(f"No booking for {scanned!r}")
    return booking
