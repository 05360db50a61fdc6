"""Database tests for claiming and releasing slots, plus the layout API."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, BookingSlot
from apps.parking.domain.inventory import SlotInventory
from apps.parking.exceptions import CapacityExceededError, InvalidSelectionError, SlotUnavailableError
from apps.parking.models import ParkingSlot
from apps.parking.services import claim_slots, get_layout, grid_for, release_slots
from apps.users.models import User
from apps.venues.models import Venue
from shared.domain.value_objects import SlotPosition


def _positions(*codes: str) -> list[SlotPosition]:
    return [SlotPosition.parse(code) for code in codes]


class ReservationEngineTests(TestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(email="driver@example.com", password="Pass12345")
        self.venue = Venue.objects.create(
            kind=Venue.Kind.UNIVERSITY,
            name="Anna University",
            location="Chennai",
            total_parking_slots=10,
            available_parking_slots=10,
            slot_price=Decimal("25.00"),
        )

    def _booking(self) -> Booking:
        return Booking.objects.create(user=self.user, venue=self.venue)

    def test_claim_reserves_slots_and_decrements_counter(self) -> None:
        booking = self._booking()

        links = claim_slots(self.venue, _positions("R1C1", "R2C3"), booking)

        self.assertEqual(sorted(link.code for link in links), ["R1C1", "R2C3"])
        self.assertEqual(self.venue.available_parking_slots, 8)
        self.assertEqual(ParkingSlot.objects.filter(venue=self.venue, is_reserved=True).count(), 2)
        self.assertEqual({link.price for link in links}, {Decimal("25.00")})
        self.assertTrue(all(slot.booking_id == booking.pk for slot in ParkingSlot.objects.all()))

    def test_conflicting_claim_changes_nothing(self) -> None:
        claim_slots(self.venue, _positions("R1C2"), self._booking())
        second = self._booking()

        with self.assertRaises(SlotUnavailableError) as ctx:
            claim_slots(self.venue, _positions("R1C1", "R1C2"), second)

        self.assertEqual(ctx.exception.codes, ["R1C2"])
        self.venue.refresh_from_db()
        self.assertEqual(self.venue.available_parking_slots, 9)
        self.assertFalse(BookingSlot.objects.filter(booking=second).exists())
        self.assertFalse(ParkingSlot.objects.filter(venue=self.venue, row=1, column=1).exists())

    def test_counter_guard(self) -> None:
        Venue.objects.filter(pk=self.venue.pk).update(available_parking_slots=1)

        with self.assertRaises(CapacityExceededError):
            claim_slots(self.venue, _positions("R1C1", "R1C2"), self._booking())

    def test_selection_outside_grid(self) -> None:
        with self.assertRaises(InvalidSelectionError):
            claim_slots(self.venue, _positions("R3C3"), self._booking())

    def test_released_slot_can_be_claimed_again(self) -> None:
        first = self._booking()
        claim_slots(self.venue, _positions("R1C1", "R1C2"), first)

        self.assertEqual(release_slots(first, reason="cancelled"), 2)
        self.assertEqual(release_slots(first, reason="cancelled"), 0)
        self.venue.refresh_from_db()
        self.assertEqual(self.venue.available_parking_slots, 10)

        links = claim_slots(self.venue, _positions("R1C2"), self._booking())
        self.assertEqual(links[0].code, "R1C2")
        self.assertEqual(ParkingSlot.objects.filter(venue=self.venue).count(), 2)

    def test_release_never_exceeds_total(self) -> None:
        booking = self._booking()
        claim_slots(self.venue, _positions("R1C1"), booking)
        Venue.objects.filter(pk=self.venue.pk).update(available_parking_slots=10)

        release_slots(booking)

        self.venue.refresh_from_db()
        self.assertEqual(self.venue.available_parking_slots, 10)

    def _stale_inventory(self, venue: Venue) -> SlotInventory:
        # Simulates a reader that missed a reservation committed under it.
        return SlotInventory(
            venue_id=venue.pk,
            grid=grid_for(venue),
            reserved={},
            max_per_booking=venue.max_slots_per_booking,
        )

    def _assert_untouched_after_conflict(self, first: Booking, second: Booking, callbacks) -> None:
        self.assertEqual(callbacks, [])
        self.venue.refresh_from_db()
        self.assertEqual(self.venue.available_parking_slots, 9)
        self.assertFalse(BookingSlot.objects.filter(booking=second).exists())
        self.assertEqual(BookingSlot.objects.filter(booking=first).count(), 1)
        slot = ParkingSlot.objects.get(venue=self.venue, row=1, column=2)
        self.assertTrue(slot.is_reserved)
        self.assertEqual(slot.booking_id, first.pk)

    def test_reserved_row_rejects_claim_missed_by_inventory(self) -> None:
        first = self._booking()
        with self.captureOnCommitCallbacks() as callbacks:
            claim_slots(self.venue, _positions("R1C2"), first)
        self.assertEqual(len(callbacks), 1)
        second = self._booking()

        with mock.patch("apps.parking.services.load_inventory", side_effect=self._stale_inventory):
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                with self.assertRaises(SlotUnavailableError) as ctx:
                    claim_slots(self.venue, _positions("R1C2"), second)

        self.assertEqual(ctx.exception.codes, ["R1C2"])
        self._assert_untouched_after_conflict(first, second, callbacks)

    def test_unique_slot_constraint_rejects_duplicate_row(self) -> None:
        first = self._booking()
        claim_slots(self.venue, _positions("R1C2"), first)
        second = self._booking()

        with mock.patch("apps.parking.services.load_inventory", side_effect=self._stale_inventory), mock.patch(
            "apps.parking.services.lock_queryset_if_possible", side_effect=lambda queryset: queryset.none()
        ):
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                with self.assertRaises(SlotUnavailableError) as ctx:
                    claim_slots(self.venue, _positions("R1C2"), second)

        self.assertEqual(ctx.exception.codes, ["R1C2"])
        self._assert_untouched_after_conflict(first, second, callbacks)

    def test_layout_marks_reserved_slots(self) -> None:
        claim_slots(self.venue, _positions("R3C2"), self._booking())
        Venue.objects.filter(pk=self.venue.pk).update(slot_price=Decimal("30.00"))
        self.venue.refresh_from_db()

        layout = get_layout(self.venue)

        self.assertEqual((layout["rows"], layout["columns"], layout["total"]), (3, 4, 10))
        self.assertEqual(layout["available"], 9)
        self.assertEqual(len(layout["slots"]), 10)
        self.assertEqual([len(row["slots"]) for row in layout["layout"]], [4, 4, 2])
        reserved = [slot for slot in layout["slots"] if slot["state"] == "reserved"]
        self.assertEqual([(s["code"], s["price"]) for s in reserved], [("R3C2", Decimal("25.00"))])
        self.assertEqual(layout["slots"][0]["price"], Decimal("30.00"))


class ParkingLayoutAPITests(APITestCase):
    def test_layout_is_public_for_active_venues(self) -> None:
        venue = Venue.objects.create(
            kind=Venue.Kind.EVENT,
            name="IPL Final",
            location="Ahmedabad",
            total_parking_slots=5,
            available_parking_slots=5,
            starts_at=timezone.now() + timedelta(days=2),
        )
        hidden = Venue.objects.create(
            kind=Venue.Kind.AIRPORT,
            name="Closed Terminal",
            location="Kochi",
            total_parking_slots=5,
            available_parking_slots=5,
            is_active=False,
        )

        response = self.client.get(reverse("parking-layout", args=[venue.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["max_slots_per_booking"], 1)
        self.assertEqual(response.data["pricing_mode"], "flat")

        response = self.client.get(reverse("parking-layout", args=[hidden.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
