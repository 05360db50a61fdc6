"""Aggregates for the admin overview."""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Count, Sum  # type: ignore

from apps.bookings.models import Booking
from apps.venues.models import Venue


def admin_overview() -> dict:
    venues_by_kind = {kind: 0 for kind in Venue.Kind.values}
    for row in Venue.objects.values("kind").annotate(total=Count("id")):
        venues_by_kind[row["kind"]] = row["total"]

    bookings_by_status = {value: 0 for value in Booking.Status.values}
    for row in Booking.objects.values("status").annotate(total=Count("id")):
        bookings_by_status[row["status"]] = row["total"]

    revenue = Booking.objects.filter(
        status__in=(Booking.Status.CONFIRMED, Booking.Status.COMPLETED)
    ).aggregate(total=Sum("payment_amount"))["total"] or Decimal("0.00")

    slots = Venue.objects.aggregate(
        total=Sum("total_parking_slots"),
        available=Sum("available_parking_slots"),
    )
    total_slots = slots["total"] or 0
    available_slots = slots["available"] or 0

    return {
        "venues": {"total": sum(venues_by_kind.values()), "by_kind": venues_by_kind},
        "bookings": {"total": sum(bookings_by_status.values()), "by_status": bookings_by_status},
        "revenue": revenue,
        "slots": {
            "total": total_slots,
            "reserved": total_slots - available_slots,
            "available": available_slots,
        },
    }
