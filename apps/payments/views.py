"""API views for checkout, gateway callbacks and payment status."""

from __future__ import annotations

import json
import logging

from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import permissions, serializers, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.exceptions import BookingError
from apps.bookings.models import Booking
from apps.bookings.views import error_response
from apps.users.api.permissions import is_platform_admin

from . import gateway
from .models import Payment
from .services import get_payment_status, initiate_payment, process_webhook

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "HTTP_X_WEBHOOK_SIGNATURE"


class ProcessPaymentSerializer(serializers.Serializer):
    booking_id = serializers.UUIDField()


class ProcessPaymentView(APIView):
    """Start checkout for one of the caller's bookings."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, *args, **kwargs):  # type: ignore
        serializer = ProcessPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = get_object_or_404(
            Booking.objects.select_related("venue", "user"),
            pk=serializer.validated_data["booking_id"],
        )
        if booking.user_id != request.user.id:
            return Response(
                {"detail": "You can only pay for your own bookings."},
                status=status.HTTP_403_FORBIDDEN,
            )

        origin = request.headers.get("Origin")
        try:
            result = initiate_payment(booking, origin=origin)
        except BookingError as exc:
            return error_response(exc)
        return Response(result, status=status.HTTP_200_OK)


class PaymentWebhookView(APIView):
    """Gateway and simulated payment callbacks. Unauthenticated; optionally signed."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):  # type: ignore
        body = request.body
        signature_valid = gateway.verify_signature(body, request.META.get(SIGNATURE_HEADER))
        if signature_valid is False:
            logger.warning("Payment callback rejected: bad signature")
            return Response({"detail": "Invalid signature."}, status=status.HTTP_401_UNAUTHORIZED)

        try:
            payload = json.loads(body or b"{}")
        except ValueError:
            return Response({"detail": "Invalid webhook payload"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = process_webhook(payload, signature_valid=signature_valid)
        except gateway.PaymentError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except Payment.DoesNotExist:
            return Response({"detail": "Order not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(result, status=status.HTTP_200_OK)


class PaymentStatusView(APIView):
    """Booking and payment status, for the payment callback page."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, booking_id, *args, **kwargs):  # type: ignore
        booking = get_object_or_404(Booking, pk=booking_id)
        if booking.user_id != request.user.id and not is_platform_admin(request.user):
            return Response(status=status.HTTP_404_NOT_FOUND)
        return Response(get_payment_status(booking))
