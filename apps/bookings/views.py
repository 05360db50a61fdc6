"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.http import HttpResponse  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.parking.exceptions import (
    CapacityExceededError,
    InvalidSelectionError,
    ReservationError,
    SlotUnavailableError,
)
from apps.users.api.permissions import is_platform_admin
from shared.application.message_bus import message_bus

from .application.command_handlers import CancelBookingCommand, CreateBookingCommand
from .exceptions import BookingError
from .filters import BookingFilterSet
from .models import Booking
from .pdf import render_booking_confirmation
from .qr import render_qr_png
from .serializers import BookingCancelSerializer, BookingCreateSerializer, BookingSerializer

logger = logging.getLogger(__name__)


def error_response(exc: Exception) -> Response:
    """Translate a booking or reservation error into an API response."""

    if isinstance(exc, SlotUnavailableError):
        return Response(
            {"detail": exc.message, "unavailable_slots": exc.codes},
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, CapacityExceededError):
        return Response({"detail": exc.message}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, (InvalidSelectionError, ReservationError, BookingError)):
        return Response({"detail": exc.message}, status=status.HTTP_400_BAD_REQUEST)
    raise exc


class IsBookingOwnerOrAdmin(permissions.BasePermission):
    """Customers see their own bookings; admins see every booking."""

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if is_platform_admin(user):
            return True
        return obj.user_id == user.id


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Create, list and manage parking bookings."""

    queryset = Booking.objects.select_related("venue", "user").prefetch_related("slots__slot")
    permission_classes = [permissions.IsAuthenticated, IsBookingOwnerOrAdmin]
    filter_backends = [DjangoFilterBackend]
    filterset_class = BookingFilterSet

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action == "cancel":
            return BookingCancelSerializer
        return BookingSerializer

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if not user.is_authenticated:
            return qs.none()
        if is_platform_admin(user):
            return qs
        return qs.filter(user=user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        command = CreateBookingCommand(
            user_id=request.user.id,
            venue_id=data["venue"].pk,
            slot_codes=data["slots"],
            starts_at=data.get("starts_at"),
            ends_at=data.get("ends_at"),
        )
        try:
            booking = message_bus.handle_command(command)
        except (ReservationError, BookingError) as exc:
            return error_response(exc)

        booking = self.get_queryset().get(pk=booking.pk)
        read_serializer = BookingSerializer(booking, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = message_bus.handle_command(
                CancelBookingCommand(
                    booking_id=booking.pk,
                    reason=serializer.validated_data["reason"],
                    cancelled_by=request.user.id,
                )
            )
        except BookingError as exc:
            return error_response(exc)
        return Response({"id": str(booking.pk), "status": booking.status}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"])
    def confirmation(self, request, pk=None):  # type: ignore
        """Printable PDF ticket of a paid booking."""
        booking: Booking = self.get_object()  # type: ignore
        if booking.status not in (Booking.Status.CONFIRMED, Booking.Status.COMPLETED):
            return Response(
                {"detail": "Confirmation is available once the booking is paid."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        response = HttpResponse(render_booking_confirmation(booking), content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="time2park-booking-{booking.pk}.pdf"'
        return response

    @action(detail=True, methods=["get"])
    def qr(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        return HttpResponse(render_qr_png(booking.qr_code), content_type="image/png")
