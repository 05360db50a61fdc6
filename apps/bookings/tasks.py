"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.core.mail import EmailMultiAlternatives  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.message_bus import message_bus

from .application.command_handlers import CompleteBookingCommand, ExpireBookingCommand
from .models import Booking
from .pdf import render_booking_confirmation

logger = logging.getLogger(__name__)


@shared_task(name="bookings.send_booking_confirmation")
def send_booking_confirmation(booking_id: str) -> bool:
    """Email the customer the confirmation PDF."""

    try:
        booking = Booking.objects.select_related("venue", "user").get(pk=booking_id)
    except Booking.DoesNotExist:
        logger.warning(f"Confirmation skipped, booking {booking_id} not found")
        return False

    if booking.status != Booking.Status.CONFIRMED:
        return False

    user = booking.user
    venue = booking.venue
    subject = f"Your parking at {venue.name} is confirmed"
    body = (
        f"Hello {user.full_name},\n\n"
        f"Your booking {booking.pk} for {', '.join(booking.slot_codes)} at {venue.name} "
        f"({venue.location}) is confirmed.\n"
        f"Amount paid: {booking.payment_amount:,.2f} {booking.currency}\n\n"
        "Your ticket is attached. Show its QR code at the entrance.\n\n"
        "TIME2PARK"
    )

    message = EmailMultiAlternatives(
        subject=subject,
        body=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[user.email],
    )
    message.attach(f"time2park-booking-{booking.pk}.pdf", render_booking_confirmation(booking), "application/pdf")
    message.send(fail_silently=False)

    logger.info(f"Confirmation email sent to {user.email} for booking {booking.pk}")
    return True


def queue_confirmation_email(event) -> None:
    """BookingConfirmed subscriber."""
    send_booking_confirmation.delay(str(event.booking_id))


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_pending_bookings")
def expire_pending_bookings() -> dict[str, int]:
    """
    Reconciliation job for abandoned holds.

    Finds PENDING/PAYMENT_PENDING bookings whose hold_expires_at has
    passed, expires them and releases their slots.

    Runs every minute through Celery Beat.

    Returns:
        dict: {"expired": number of bookings expired}
    """
    now = timezone.now()
    expired_count = 0

    booking_ids = list(
        Booking.objects.filter(
            status__in=Booking.HOLD_STATUSES,
            hold_expires_at__lte=now,
        ).values_list("pk", flat=True)
    )

    for booking_id in booking_ids:
        try:
            booking = message_bus.handle_command(ExpireBookingCommand(booking_id=booking_id))
            if booking.status == Booking.Status.EXPIRED:
                expired_count += 1
        except Exception as e:
            logger.error(f"Error expiring booking {booking_id}: {e}", exc_info=True)

    if expired_count > 0:
        logger.info(f"Expired {expired_count} pending bookings")

    return {"expired": expired_count}


@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Moves confirmed bookings to COMPLETED once the parking window is over.

    Event bookings end at the event start plus PARKING_EVENT_DURATION_HOURS;
    hourly bookings at their ``ends_at``.

    Runs every hour.

    Returns:
        dict: {"completed": number of bookings completed}
    """
    now = timezone.now()
    event_cutoff = now - timedelta(hours=settings.PARKING_EVENT_DURATION_HOURS)
    completed_count = 0

    booking_ids = list(
        Booking.objects.filter(status=Booking.Status.CONFIRMED)
        .filter(Q(ends_at__lte=now) | Q(ends_at__isnull=True, starts_at__lte=event_cutoff))
        .values_list("pk", flat=True)
    )

    for booking_id in booking_ids:
        try:
            message_bus.handle_command(CompleteBookingCommand(booking_id=booking_id))
            completed_count += 1
        except Exception as e:
            logger.error(f"Error completing booking {booking_id}: {e}", exc_info=True)

    if completed_count > 0:
        logger.info(f"Completed {completed_count} bookings")

    return {"completed": completed_count}
