"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.application.command_handlers import (
    CompleteBookingCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
)
from apps.bookings.exceptions import BookingStateError
from apps.bookings.models import Booking
from apps.bookings.tasks import complete_finished_bookings, expire_pending_bookings
from apps.parking.models import ParkingSlot
from apps.users.models import User
from apps.venues.models import Venue
from shared.application.message_bus import message_bus


class BookingAPITests(APITestCase):
    """Covers booking creation, slot conflicts and cancellation."""

    def setUp(self) -> None:
        self.customer = User.objects.create_user(
            email="customer@example.com",
            password="CustomerPass123",
            first_name="Meera",
            last_name="Iyer",
        )
        self.other = User.objects.create_user(email="other@example.com", password="OtherPass123")
        self.event = Venue.objects.create(
            kind=Venue.Kind.EVENT,
            name="Coldplay: Music of the Spheres",
            location="DY Patil Stadium, Mumbai",
            total_parking_slots=30,
            available_parking_slots=30,
            slot_price=Decimal("20.00"),
            starts_at=timezone.now() + timedelta(days=10),
        )
        self.airport = Venue.objects.create(
            kind=Venue.Kind.AIRPORT,
            name="Indira Gandhi International Airport",
            location="New Delhi",
            total_parking_slots=40,
            available_parking_slots=40,
            slot_price=Decimal("40.00"),
        )
        self.client.force_authenticate(self.customer)
        self.list_url = reverse("booking-list")

    def _window(self, hours: int = 3) -> tuple[str, str]:
        start = (timezone.now() + timedelta(days=1)).replace(microsecond=0)
        return start.isoformat(), (start + timedelta(hours=hours)).isoformat()

    def test_event_booking_claims_slot(self) -> None:
        response = self.client.post(
            self.list_url, {"venue": self.event.id, "slots": ["R1C3"]}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], Booking.Status.PENDING)
        self.assertEqual(response.data["slot_codes"], ["R1C3"])
        self.assertEqual(Decimal(response.data["payment_amount"]), Decimal("20.00"))
        self.assertTrue(response.data["qr_code"].startswith("TIME2PARK-BOOKING-"))
        self.assertIsNotNone(response.data["hold_expires_at"])

        self.event.refresh_from_db()
        self.assertEqual(self.event.available_parking_slots, 29)

    def test_hourly_booking_priced_per_hour(self) -> None:
        starts_at, ends_at = self._window(hours=3)
        payload = {
            "venue": self.airport.id,
            "slots": ["R1C1", "R1C2"],
            "starts_at": starts_at,
            "ends_at": ends_at,
        }

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["hours"], 3)
        self.assertEqual(Decimal(response.data["payment_amount"]), Decimal("240.00"))

    def test_hourly_booking_requires_window(self) -> None:
        response = self.client.post(self.list_url, {"venue": self.airport.id, "slots": ["R1C1"]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        start = timezone.now() - timedelta(hours=2)
        response = self.client.post(
            self.list_url,
            {
                "venue": self.airport.id,
                "slots": ["R1C1"],
                "starts_at": start.isoformat(),
                "ends_at": (start + timedelta(hours=3)).isoformat(),
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Booking.objects.exists())

    def test_prevent_double_booking_of_slot(self) -> None:
        first = self.client.post(self.list_url, {"venue": self.event.id, "slots": ["R2C2"]}, format="json")
        self.assertEqual(first.status_code, status.HTTP_201_CREATED, first.data)

        self.client.force_authenticate(self.other)
        conflict = self.client.post(self.list_url, {"venue": self.event.id, "slots": ["R2C2"]}, format="json")

        self.assertEqual(conflict.status_code, status.HTTP_409_CONFLICT, conflict.data)
        self.assertEqual(conflict.data["unavailable_slots"], ["R2C2"])
        self.assertEqual(Booking.objects.count(), 1)
        self.event.refresh_from_db()
        self.assertEqual(self.event.available_parking_slots, 29)

    def test_event_allows_single_slot_and_valid_codes(self) -> None:
        response = self.client.post(
            self.list_url, {"venue": self.event.id, "slots": ["R1C1", "R1C2"]}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(self.list_url, {"venue": self.event.id, "slots": ["X9"]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Booking.objects.exists())

    def test_started_event_cannot_be_booked(self) -> None:
        Venue.objects.filter(pk=self.event.pk).update(starts_at=timezone.now() - timedelta(minutes=5))
        response = self.client.post(self.list_url, {"venue": self.event.id, "slots": ["R1C1"]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_shows_own_bookings_with_filters(self) -> None:
        self.client.post(self.list_url, {"venue": self.event.id, "slots": ["R1C1"]}, format="json")
        starts_at, ends_at = self._window()
        self.client.post(
            self.list_url,
            {"venue": self.airport.id, "slots": ["R1C1"], "starts_at": starts_at, "ends_at": ends_at},
            format="json",
        )
        message_bus.handle_command(
            CreateBookingCommand(user_id=self.other.id, venue_id=self.event.id, slot_codes=["R3C3"])
        )

        response = self.client.get(self.list_url)
        self.assertEqual(len(response.data), 2)

        response = self.client.get(self.list_url, {"kind": "airport"})
        self.assertEqual([row["venue"]["id"] for row in response.data], [self.airport.id])

        response = self.client.get(self.list_url, {"status": "confirmed"})
        self.assertEqual(response.data, [])

    def test_owner_can_cancel_and_slots_return(self) -> None:
        created = self.client.post(self.list_url, {"venue": self.event.id, "slots": ["R1C1"]}, format="json")
        cancel_url = reverse("booking-cancel", args=[created.data["id"]])

        self.client.force_authenticate(self.other)
        self.assertEqual(self.client.post(cancel_url, {}, format="json").status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(self.customer)
        response = self.client.post(cancel_url, {"reason": "Plans changed"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CANCELLED)
        booking = Booking.objects.get(pk=created.data["id"])
        self.assertEqual(booking.cancellation_reason, "Plans changed")
        self.event.refresh_from_db()
        self.assertEqual(self.event.available_parking_slots, 30)
        self.assertFalse(ParkingSlot.objects.filter(is_reserved=True).exists())

        again = self.client.post(cancel_url, {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)

    def test_confirmation_pdf_and_qr(self) -> None:
        booking = message_bus.handle_command(
            CreateBookingCommand(user_id=self.customer.id, venue_id=self.event.id, slot_codes=["R1C1"])
        )
        pdf_url = reverse("booking-confirmation", args=[booking.pk])

        self.assertEqual(self.client.get(pdf_url).status_code, status.HTTP_400_BAD_REQUEST)

        message_bus.handle_command(ConfirmBookingCommand(booking_id=booking.pk))
        response = self.client.get(pdf_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertTrue(response.content.startswith(b"%PDF"))

        response = self.client.get(reverse("booking-qr", args=[booking.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.content.startswith(b"\x89PNG"))


class BookingLifecycleTests(APITestCase):
    """Payment confirmation email and the periodic reconciliation tasks."""

    def setUp(self) -> None:
        self.customer = User.objects.create_user(email="traveller@example.com", password="Pass12345")
        self.venue = Venue.objects.create(
            kind=Venue.Kind.UNIVERSITY,
            name="IIT Delhi",
            location="Hauz Khas, New Delhi",
            total_parking_slots=12,
            available_parking_slots=12,
        )
        start = timezone.now() + timedelta(hours=2)
        self.booking = message_bus.handle_command(
            CreateBookingCommand(
                user_id=self.customer.id,
                venue_id=self.venue.id,
                slot_codes=["R1C1"],
                starts_at=start,
                ends_at=start + timedelta(hours=2),
            )
        )

    def test_confirmation_email_sent_after_commit(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            message_bus.handle_command(ConfirmBookingCommand(booking_id=self.booking.pk, reference_id="ref-1"))

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["traveller@example.com"])
        self.assertIn("IIT Delhi", message.subject)
        self.assertEqual(message.attachments[0][2], "application/pdf")

    def test_expire_pending_bookings_releases_hold(self) -> None:
        self.assertEqual(expire_pending_bookings(), {"expired": 0})

        Booking.objects.filter(pk=self.booking.pk).update(hold_expires_at=timezone.now() - timedelta(seconds=1))
        self.assertEqual(expire_pending_bookings(), {"expired": 1})

        self.booking.refresh_from_db()
        self.venue.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.EXPIRED)
        self.assertEqual(self.venue.available_parking_slots, 12)

    def test_confirmed_booking_is_not_expired(self) -> None:
        message_bus.handle_command(ConfirmBookingCommand(booking_id=self.booking.pk))
        Booking.objects.filter(pk=self.booking.pk).update(hold_expires_at=timezone.now() - timedelta(minutes=5))

        self.assertEqual(expire_pending_bookings(), {"expired": 0})
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)

    def test_complete_finished_bookings(self) -> None:
        message_bus.handle_command(ConfirmBookingCommand(booking_id=self.booking.pk))
        self.assertEqual(complete_finished_bookings(), {"completed": 0})

        past = timezone.now() - timedelta(hours=1)
        Booking.objects.filter(pk=self.booking.pk).update(starts_at=past - timedelta(hours=2), ends_at=past)
        self.assertEqual(complete_finished_bookings(), {"completed": 1})

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.COMPLETED)
        self.venue.refresh_from_db()
        self.assertEqual(self.venue.available_parking_slots, 12)
        with self.assertRaises(BookingStateError):
            message_bus.handle_command(CompleteBookingCommand(booking_id=self.booking.pk))
