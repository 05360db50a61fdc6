"""Reservation engine: layout, atomic claim and release of parking slots."""

from __future__ import annotations

import logging
from typing import Iterable

from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import F  # type: ignore
from django.db.models.functions import Least  # type: ignore
from django.utils import timezone  # type: ignore

from apps.venues.models import Venue
from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import SlotPosition
from shared.infrastructure.locking import lock_instance, lock_queryset_if_possible

from .domain.grid import GridShape
from .domain.inventory import SlotInventory
from .exceptions import CapacityExceededError, SlotUnavailableError
from .models import ParkingSlot

logger = logging.getLogger(__name__)


def grid_for(venue: Venue) -> GridShape:
    return GridShape(venue.total_parking_slots, settings.PARKING_MAX_GRID_COLUMNS)


def load_inventory(venue: Venue) -> SlotInventory:
    """Build the inventory aggregate from the venue's reserved slots.

    Call under the venue lock when the result is used to write.
    """

    rows = ParkingSlot.objects.filter(venue=venue, is_reserved=True).values_list(
        "row", "column", "booking_id"
    )
    return SlotInventory(
        venue_id=venue.pk,
        grid=grid_for(venue),
        reserved={SlotPosition(row, column): booking_id for row, column, booking_id in rows},
        max_per_booking=venue.max_slots_per_booking,
    )


def get_layout(venue: Venue) -> dict:
    """Every slot of the venue grid with its state and price.

    Reserved slots report the price they were sold at; free slots the
    venue's current slot price.
    """

    grid = grid_for(venue)
    reserved = {
        (row, column): price
        for row, column, price in ParkingSlot.objects.filter(venue=venue, is_reserved=True).values_list(
            "row", "column", "price"
        )
    }

    slots = []
    by_row: dict[int, list[dict]] = {}
    for position in grid.positions():
        key = (position.row, position.column)
        is_reserved = key in reserved
        entry = {
            "code": position.code,
            "row": position.row,
            "column": position.column,
            "price": reserved[key] if is_reserved else venue.slot_price,
            "state": "reserved" if is_reserved else "available",
        }
        slots.append(entry)
        by_row.setdefault(position.row, []).append(entry)

    return {
        "venue_id": venue.pk,
        "kind": venue.kind,
        "rows": grid.rows,
        "columns": grid.columns,
        "total": grid.total,
        "available": venue.available_parking_slots,
        "slot_price": venue.slot_price,
        "pricing_mode": venue.pricing_mode,
        "max_slots_per_booking": venue.max_slots_per_booking,
        "slots": slots,
        "layout": [{"row": row, "slots": entries} for row, entries in sorted(by_row.items())],
    }


def _reserve_slot(venue: Venue, position: SlotPosition, booking, now) -> ParkingSlot:
    slot = lock_queryset_if_possible(
        ParkingSlot.objects.filter(venue=venue, row=position.row, column=position.column)
    ).first()

    if slot is None:
        try:
            with transaction.atomic():
                return ParkingSlot.objects.create(
                    venue=venue,
                    row=position.row,
                    column=position.column,
                    price=venue.slot_price,
                    is_reserved=True,
                    booking=booking,
                    reserved_at=now,
                )
        except IntegrityError as exc:
            raise SlotUnavailableError([position.code]) from exc

    # Conditional update: only a free slot can change hands.
    updated = ParkingSlot.objects.filter(pk=slot.pk, is_reserved=False).update(
        is_reserved=True,
        booking=booking,
        price=venue.slot_price,
        reserved_at=now,
        updated_at=now,
    )
    if not updated:
        raise SlotUnavailableError([position.code])
    slot.refresh_from_db()
    return slot


def claim_slots(venue: Venue, positions: Iterable[SlotPosition], booking) -> list:
    """Atomically reserve ``positions`` for ``booking``: all of them or none.

    Returns the created ``BookingSlot`` links.

    Raises:
        InvalidSelectionError: malformed, duplicated, outside grid, too many
        SlotUnavailableError: a selected slot is already reserved
        CapacityExceededError: the venue counter has too few free slots
    """

    from apps.bookings.models import BookingSlot

    positions = list(positions)
    with DjangoUnitOfWork() as uow:
        locked = lock_instance(Venue, venue.pk)
        inventory = load_inventory(locked)
        try:
            inventory.validate_selection(positions)
        except SlotUnavailableError as exc:
            logger.warning("Slot conflict on venue %s: %s", locked.pk, ", ".join(exc.codes))
            raise

        if locked.available_parking_slots < len(positions):
            raise CapacityExceededError(
                f"Only {locked.available_parking_slots} slot(s) left, {len(positions)} requested"
            )

        claimed = inventory.claim(booking.pk, positions)
        now = timezone.now()
        links = []
        for position in claimed:
            slot = _reserve_slot(locked, position, booking, now)
            links.append(BookingSlot(booking=booking, slot=slot, price=slot.price))
        links = BookingSlot.objects.bulk_create(links)

        Venue.objects.filter(pk=locked.pk).update(
            available_parking_slots=F("available_parking_slots") - len(claimed),
            updated_at=now,
        )
        uow.collect_events(inventory)

    venue.refresh_from_db(fields=["available_parking_slots"])
    logger.info(
        "Booking %s claimed %s on venue %s",
        booking.pk,
        ", ".join(p.code for p in claimed),
        venue.pk,
    )
    return links


def release_slots(booking, reason: str = "") -> int:
    """Return the booking's slots to the pool. Idempotent.

    The venue counter goes up by the number released, never past the
    venue total.
    """

    with DjangoUnitOfWork() as uow:
        venue = lock_instance(Venue, booking.venue_id)
        inventory = load_inventory(venue)
        released = inventory.release(booking.pk, reason)
        if not released:
            return 0

        now = timezone.now()
        ParkingSlot.objects.filter(venue=venue, booking=booking, is_reserved=True).update(
            is_reserved=False,
            booking=None,
            reserved_at=None,
            updated_at=now,
        )
        Venue.objects.filter(pk=venue.pk).update(
            available_parking_slots=Least(
                F("available_parking_slots") + len(released),
                F("total_parking_slots"),
            ),
            updated_at=now,
        )
        uow.collect_events(inventory)

    logger.info(
        "Booking %s released %s on venue %s (%s)",
        booking.pk,
        ", ".join(p.code for p in released),
        venue.pk,
        reason or "no reason",
    )
    return len(released)
