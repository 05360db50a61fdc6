"""Payment use cases: initiate checkout, settle gateway callbacks, report status."""

from __future__ import annotations

import logging
from typing import Any

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore

from apps.bookings.application.command_handlers import (
    ConfirmBookingCommand,
    FailBookingPaymentCommand,
)
from apps.bookings.exceptions import BookingStateError
from apps.bookings.models import Booking
from shared.application.message_bus import message_bus
from shared.infrastructure.locking import lock_instance, lock_queryset_if_possible

from . import gateway
from .models import Payment, PaymentWebhookEvent

logger = logging.getLogger(__name__)


def _customer_for(booking: Booking) -> gateway.Customer:
    user = booking.user
    return gateway.Customer(
        id=str(user.pk)[:8],
        name=user.full_name or user.email,
        email=user.email,
        phone=user.phone,
    )


def _checkout_response(payment: Payment) -> dict[str, Any]:
    return {
        "success": True,
        "payment_link": payment.payment_link,
        "order_id": payment.order_id,
        "simulated": payment.provider == Payment.Provider.SIMULATED,
        "amount": payment.amount,
        "currency": payment.currency,
    }


def initiate_payment(booking: Booking, origin: str | None = None) -> dict[str, Any]:
    """
    Open (or reopen) checkout for a booking on hold.

    The booking moves to PAYMENT_PENDING and keeps a single Payment row;
    a retry returns the link issued before. The gateway is only called
    when credentials are configured. A gateway failure falls back to a
    simulated link.

    Raises:
        BookingStateError: the booking is not waiting for payment
    """
    origin = (origin or settings.FRONTEND_URL).rstrip("/")

    with transaction.atomic():
        booking = lock_instance(Booking, booking.pk)
        if not booking.is_hold or booking.hold_has_expired():
            raise BookingStateError(f"Booking is {booking.status}; payment cannot be started.")

        payment, created = Payment.objects.get_or_create(
            booking=booking,
            defaults={
                "order_id": gateway.build_order_id(booking.pk),
                "amount": booking.payment_amount,
                "currency": booking.currency,
            },
        )
        if booking.status == Booking.Status.PENDING:
            booking.transition_to(Booking.Status.PAYMENT_PENDING)

    if payment.payment_link and not created:
        logger.info(f"Reusing checkout {payment.order_id} for booking {booking.pk}")
        return _checkout_response(payment)

    payment.provider = Payment.Provider.SIMULATED
    payment.payment_link = gateway.simulated_payment_link(origin, booking.pk)

    if gateway.is_configured():
        try:
            order = gateway.create_order(
                order_id=payment.order_id,
                amount=payment.amount,
                currency=payment.currency,
                customer=_customer_for(booking),
                return_url=f"{origin}/payment-callback?bookingId={booking.pk}&order_id={payment.order_id}",
                note=f"Payment for {booking.venue.name}",
            )
        except gateway.PaymentError as e:
            logger.warning(f"Gateway unavailable for booking {booking.pk}, using simulated checkout: {e}")
        else:
            if order["payment_link"]:
                payment.provider = Payment.Provider.CASHFREE
                payment.payment_link = order["payment_link"]
                payment.metadata["cf_order_id"] = order["cf_order_id"]

    payment.save(update_fields=["provider", "payment_link", "metadata", "updated_at"])
    logger.info(f"Checkout {payment.order_id} opened for booking {booking.pk} via {payment.provider}")
    return _checkout_response(payment)


def process_webhook(payload: dict, signature_valid: bool | None = None) -> dict[str, Any]:
    """
    Settle a payment from a gateway or simulated callback.

    Replays for an already settled payment change nothing and report
    the stored status. A success that arrives after the hold is gone is
    recorded as paid and flagged ``late``; the booking stays as it is.

    Raises:
        gateway.PaymentError: payload has neither known shape
        Payment.DoesNotExist: no payment with that order id
    """
    if not isinstance(payload, dict):
        payload = {"raw": payload}
    event = PaymentWebhookEvent.objects.create(
        order_id=str(payload.get("orderId") or payload.get("order_id") or "")[:50],
        payload=payload,
        signature_valid=signature_valid,
    )

    try:
        callback = gateway.parse_callback(payload)
    except gateway.PaymentError:
        event.result = "invalid"
        event.save(update_fields=["result"])
        raise

    event.status = callback.status
    logger.info(f"Payment callback for order {callback.order_id}: {callback.status or 'no status'}")

    if not Payment.objects.filter(order_id=callback.order_id).exists():
        event.result = "unknown_order"
        event.save(update_fields=["status", "result"])
        logger.warning(f"Callback for unknown order {callback.order_id}")
        raise Payment.DoesNotExist(f"Order {callback.order_id} not found")

    with transaction.atomic():
        payment = lock_queryset_if_possible(
            Payment.objects.select_related("booking").filter(order_id=callback.order_id)
        ).get()

        if payment.is_settled:
            event.result = "duplicate"
            event.save(update_fields=["status", "result"])
            logger.info(f"Order {payment.order_id} already {payment.status}, callback ignored")
            return {"success": True, "status": payment.status}

        booking = payment.booking
        if callback.is_success:
            if booking.is_hold:
                message_bus.handle_command(
                    ConfirmBookingCommand(booking_id=booking.pk, reference_id=callback.reference_id)
                )
                payment.mark_success(callback.reference_id, callback.mode)
            elif booking.status == Booking.Status.CONFIRMED:
                payment.mark_success(callback.reference_id, callback.mode)
            else:
                payment.mark_success(callback.reference_id, callback.mode, late=True)
                logger.warning(
                    f"Late payment {payment.order_id} for booking {booking.pk} ({booking.status}); "
                    "flagged for refund"
                )
        else:
            payment.mark_failed(
                reason=callback.status or "unknown",
                reference_id=callback.reference_id,
                mode=callback.mode,
            )
            if booking.is_hold:
                message_bus.handle_command(
                    FailBookingPaymentCommand(booking_id=booking.pk, reason=callback.status)
                )

        event.processed = True
        event.result = payment.status
        event.save(update_fields=["status", "processed", "result"])

    return {"success": True, "status": payment.status}


def get_payment_status(booking: Booking) -> dict[str, Any]:
    """Booking status plus the settled payment details, if any."""

    payment = Payment.objects.filter(booking=booking).first()
    return {
        "booking_id": str(booking.pk),
        "booking_status": booking.status,
        "payment_status": payment.status if payment else None,
        "order_id": payment.order_id if payment else None,
        "reference_id": payment.reference_id if payment else "",
        "amount": booking.payment_amount,
        "currency": booking.currency,
        "paid_at": payment.paid_at if payment else None,
    }
