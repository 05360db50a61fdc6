"""Vendor API: venue dashboard, booked slot lists and customer check-in."""

from __future__ import annotations

import logging

from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.application.command_handlers import MarkCustomerArrivedCommand
from apps.bookings.exceptions import BookingError
from apps.bookings.models import Booking, BookingSlot
from apps.bookings.views import error_response
from apps.users.api.permissions import IsVendorOrAdmin
from apps.venues.models import Venue
from shared.application.message_bus import message_bus

from .serializers import QRCheckInSerializer, VendorBookingSlotSerializer, VendorVenueStatsSerializer
from .services import booked_slots, find_booking_by_scan, venue_stats

logger = logging.getLogger(__name__)


class VendorDashboardView(APIView):
    """Booked and arrived counts per venue; ``?kind=event|university|airport``."""

    permission_classes = [permissions.IsAuthenticated, IsVendorOrAdmin]

    def get(self, request, *args, **kwargs):  # type: ignore
        kind = request.query_params.get("kind")
        if kind and kind not in Venue.Kind.values:
            return Response({"detail": f"Unknown venue kind '{kind}'."}, status=status.HTTP_400_BAD_REQUEST)
        serializer = VendorVenueStatsSerializer(venue_stats(kind), many=True)
        return Response(serializer.data)


class VenueBookedSlotsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsVendorOrAdmin]

    def get(self, request, venue_id, *args, **kwargs):  # type: ignore
        venue = get_object_or_404(Venue, pk=venue_id)
        serializer = VendorBookingSlotSerializer(booked_slots(venue), many=True)
        return Response(serializer.data)


class MarkSlotArrivedView(APIView):
    """Check in the customer of one booked slot. Repeats are no-ops."""

    permission_classes = [permissions.IsAuthenticated, IsVendorOrAdmin]

    def post(self, request, slot_id, *args, **kwargs):  # type: ignore
        link = get_object_or_404(BookingSlot.objects.select_related("booking"), pk=slot_id)
        try:
            arrived = message_bus.handle_command(
                MarkCustomerArrivedCommand(
                    booking_id=link.booking_id,
                    booking_slot_ids=[link.pk],
                    checked_in_by=request.user.id,
                )
            )
        except BookingError as exc:
            return error_response(exc)

        data = VendorBookingSlotSerializer(
            BookingSlot.objects.select_related("slot", "booking__user").get(pk=link.pk)
        ).data
        data["newly_arrived"] = bool(arrived)
        return Response(data, status=status.HTTP_200_OK)


class QRCheckInView(APIView):
    """Scan a ticket QR code and check in every slot of the booking."""

    permission_classes = [permissions.IsAuthenticated, IsVendorOrAdmin]

    def post(self, request, *args, **kwargs):  # type: ignore
        serializer = QRCheckInSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booking = find_booking_by_scan(serializer.validated_data["code"])
        except Booking.DoesNotExist:
            return Response({"detail": "Booking not found."}, status=status.HTTP_404_NOT_FOUND)

        try:
            arrived = message_bus.handle_command(
                MarkCustomerArrivedCommand(booking_id=booking.pk, checked_in_by=request.user.id)
            )
        except BookingError as exc:
            return error_response(exc)

        logger.info(f"QR check-in for booking {booking.pk} by user {request.user.id}")
        return Response(
            {
                "booking_id": str(booking.pk),
                "venue": booking.venue.name,
                "customer_name": booking.user.full_name or booking.user.email,
                "slots": booking.slot_codes,
                "newly_arrived": arrived,
            },
            status=status.HTTP_200_OK,
        )
