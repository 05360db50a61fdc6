"""API tests for the admin overview."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.application.command_handlers import ConfirmBookingCommand, CreateBookingCommand
from apps.users.models import User
from apps.venues.models import Venue
from shared.application.message_bus import message_bus


class AdminOverviewTests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(email="admin@example.com", password="Pass12345", role=User.Role.ADMIN)
        self.customer = User.objects.create_user(email="customer@example.com", password="Pass12345")
        event = Venue.objects.create(
            kind=Venue.Kind.EVENT,
            name="Arijit Singh Concert",
            location="Delhi",
            total_parking_slots=12,
            available_parking_slots=12,
            slot_price=Decimal("30.00"),
            starts_at=timezone.now() + timedelta(days=7),
        )
        Venue.objects.create(
            kind=Venue.Kind.UNIVERSITY,
            name="IIT Bombay",
            location="Mumbai",
            total_parking_slots=8,
            available_parking_slots=8,
        )
        paid = message_bus.handle_command(
            CreateBookingCommand(user_id=self.customer.id, venue_id=event.id, slot_codes=["R1C1"])
        )
        message_bus.handle_command(ConfirmBookingCommand(booking_id=paid.pk))
        message_bus.handle_command(
            CreateBookingCommand(user_id=self.customer.id, venue_id=event.id, slot_codes=["R1C2"])
        )

    def test_admin_only(self) -> None:
        self.client.force_authenticate(self.customer)
        self.assertEqual(self.client.get(reverse("admin-overview")).status_code, status.HTTP_403_FORBIDDEN)

    def test_overview_counts(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.get(reverse("admin-overview"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(data["venues"]["by_kind"], {"event": 1, "university": 1, "airport": 0})
        self.assertEqual(data["bookings"]["by_status"]["confirmed"], 1)
        self.assertEqual(data["bookings"]["by_status"]["pending"], 1)
        self.assertEqual(data["bookings"]["total"], 2)
        self.assertEqual(data["revenue"], Decimal("30.00"))
        self.assertEqual(data["slots"], {"total": 20, "reserved": 2, "available": 18})
