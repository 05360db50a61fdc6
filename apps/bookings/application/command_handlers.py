"""
Booking Command Handlers

The use cases of the booking lifecycle. Each runs inside a unit of work
so slot claims, status changes and releases commit together and the
resulting events are only published afterwards.

Commands:
- CreateBookingCommand: claim slots and open a payment hold
- ConfirmBookingCommand: payment succeeded
- FailBookingPaymentCommand: payment failed, slots go back
- CancelBookingCommand: customer or admin cancels, slots go back
- ExpireBookingCommand: hold ran out, slots go back
- CompleteBookingCommand: parking window is over
- MarkCustomerArrivedCommand: vendor checks a customer in
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID
import logging

from django.conf import settings
from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import Money, TimeWindow
from shared.infrastructure.locking import lock_instance
from apps.bookings.domain.events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    BookingExpired,
    BookingPaymentFailed,
    CustomerArrived,
)
from apps.bookings.exceptions import BookingStateError, BookingValidationError
from apps.bookings.models import Booking
from apps.parking.domain.inventory import parse_selection
from apps.parking.services import claim_slots, release_slots
from apps.venues.models import Venue

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to book parking slots

    ``starts_at``/``ends_at`` are required for universities and airports
    and ignored for events, which use the event start.
    """
    user_id: int
    venue_id: int
    slot_codes: List[str]
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None


@dataclass
class ConfirmBookingCommand:
    """Command to confirm a booking after successful payment"""
    booking_id: UUID
    reference_id: str = ''


@dataclass
class FailBookingPaymentCommand:
    booking_id: UUID
    reason: str = ''


@dataclass
class CancelBookingCommand:
    booking_id: UUID
    reason: str = ''
    cancelled_by: Optional[int] = None


@dataclass
class ExpireBookingCommand:
    """Command to expire an unpaid hold"""
    booking_id: UUID
    force: bool = False


@dataclass
class CompleteBookingCommand:
    booking_id: UUID


@dataclass
class MarkCustomerArrivedCommand:
    """
    Command to record arrival

    Without ``booking_slot_ids`` every slot of the booking is checked in.
    """
    booking_id: UUID
    booking_slot_ids: List[int] = field(default_factory=list)
    checked_in_by: Optional[int] = None


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking

    1. Validate the venue and the requested window
    2. Create the booking row (PENDING, with a hold deadline)
    3. Claim the slots through the reservation engine (venue lock,
       inventory check, counter check, slot upsert)
    4. Price the booking from the claimed slots
    Any failure rolls back the booking together with the claim.
    """

    def handle(self, command: CreateBookingCommand) -> Booking:
        logger.info(
            f"Creating booking for venue {command.venue_id}, user {command.user_id}, "
            f"slots {command.slot_codes}"
        )

        try:
            venue = Venue.objects.active().get(pk=command.venue_id)
        except Venue.DoesNotExist:
            raise BookingValidationError(f"Venue {command.venue_id} not found or not active")

        positions = parse_selection(command.slot_codes)
        now = timezone.now()

        if venue.is_event:
            if venue.has_started(now):
                raise BookingValidationError("This event has already started")
            starts_at, ends_at, hours = venue.starts_at, None, 1
        else:
            if not command.starts_at or not command.ends_at:
                raise BookingValidationError("Start and end time are required")
            try:
                window = TimeWindow(command.starts_at, command.ends_at)
            except ValueError as exc:
                raise BookingValidationError(str(exc))
            if window.start < now - timedelta(minutes=1):
                raise BookingValidationError("Start time cannot be in the past")
            starts_at, ends_at, hours = window.start, window.end, window.billable_hours

        currency = settings.PARKING_CURRENCY

        with DjangoUnitOfWork() as uow:
            booking = Booking.objects.create(
                user_id=command.user_id,
                venue=venue,
                status=Booking.Status.PENDING,
                starts_at=starts_at,
                ends_at=ends_at,
                hours=hours,
                currency=currency,
                hold_expires_at=now + timedelta(minutes=settings.PARKING_HOLD_MINUTES),
            )

            links = claim_slots(venue, positions, booking)

            subtotal = Money.zero(currency)
            for link in links:
                subtotal = subtotal + Money(link.price, currency)
            total = subtotal if venue.is_event else subtotal * hours

            booking.payment_amount = total.quantized()
            booking.save(update_fields=["payment_amount", "updated_at"])

            uow.add_event(BookingCreated(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                venue_id=venue.pk,
                user_id=command.user_id,
                codes=[link.slot.code for link in links],
                amount=booking.payment_amount,
            ))

        logger.info(f"Booking {booking.pk} created, amount {total}")
        return booking


class ConfirmBookingHandler:
    """Handler for confirming a booking after payment. Repeats are no-ops."""

    def handle(self, command: ConfirmBookingCommand) -> Booking:
        logger.info(f"Confirming booking {command.booking_id}")

        with DjangoUnitOfWork() as uow:
            booking = lock_instance(Booking, command.booking_id)
            if booking.status == Booking.Status.CONFIRMED:
                return booking

            booking.transition_to(
                Booking.Status.CONFIRMED,
                confirmed_at=timezone.now(),
                hold_expires_at=None,
            )
            uow.add_event(BookingConfirmed(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                venue_id=booking.venue_id,
                user_id=booking.user_id,
                reference_id=command.reference_id,
            ))

        logger.info(f"Booking {booking.pk} confirmed")
        return booking


class FailBookingPaymentHandler:
    """Handler for a failed payment: the hold ends and its slots are released"""

    def handle(self, command: FailBookingPaymentCommand) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = lock_instance(Booking, command.booking_id)
            if booking.status == Booking.Status.PAYMENT_FAILED:
                return booking

            booking.transition_to(Booking.Status.PAYMENT_FAILED, hold_expires_at=None)
            release_slots(booking, reason="payment_failed")
            uow.add_event(BookingPaymentFailed(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                venue_id=booking.venue_id,
                reason=command.reason,
            ))

        logger.warning(f"Payment failed for booking {booking.pk}: {command.reason or 'no reason'}")
        return booking


class CancelBookingHandler:
    """Handler for cancelling a booking and releasing its slots"""

    def handle(self, command: CancelBookingCommand) -> Booking:
        logger.info(f"Cancelling booking {command.booking_id}, reason: {command.reason}")

        with DjangoUnitOfWork() as uow:
            booking = lock_instance(Booking, command.booking_id)
            old_status = booking.status

            booking.transition_to(
                Booking.Status.CANCELLED,
                cancelled_at=timezone.now(),
                cancellation_reason=command.reason[:255],
                hold_expires_at=None,
            )
            release_slots(booking, reason="cancelled")
            uow.add_event(BookingCancelled(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                venue_id=booking.venue_id,
                old_status=old_status,
                reason=command.reason,
            ))

        logger.info(f"Booking {booking.pk} cancelled (was {old_status})")
        return booking


class ExpireBookingHandler:
    """
    Handler for expiring an unpaid hold

    Bookings that left the hold statuses in the meantime (paid, failed,
    cancelled) are returned untouched.
    """

    def handle(self, command: ExpireBookingCommand) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = lock_instance(Booking, command.booking_id)
            if not booking.is_hold:
                return booking
            if not command.force and not booking.hold_has_expired():
                return booking

            booking.transition_to(
                Booking.Status.EXPIRED,
                cancelled_at=timezone.now(),
                cancellation_reason="Payment was not completed in time",
            )
            release_slots(booking, reason="expired")
            uow.add_event(BookingExpired(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                venue_id=booking.venue_id,
            ))

        logger.info(f"Booking {booking.pk} expired")
        return booking


class CompleteBookingHandler:
    """Handler for completing a confirmed booking once its window ended; its slots go back"""

    def handle(self, command: CompleteBookingCommand) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = lock_instance(Booking, command.booking_id)
            booking.transition_to(Booking.Status.COMPLETED, completed_at=timezone.now())
            release_slots(booking, reason="completed")
            uow.add_event(BookingCompleted(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                venue_id=booking.venue_id,
            ))

        logger.info(f"Booking {booking.pk} completed")
        return booking


class MarkCustomerArrivedHandler:
    """Handler for vendor check-in. Already arrived slots are skipped."""

    def handle(self, command: MarkCustomerArrivedCommand) -> List[str]:
        """Returns the codes of the slots newly marked as arrived"""

        with DjangoUnitOfWork() as uow:
            booking = lock_instance(Booking, command.booking_id)
            if booking.status != Booking.Status.CONFIRMED:
                raise BookingStateError(
                    f"Only confirmed bookings can be checked in; booking is {booking.status}"
                )

            links = booking.slots.select_related("slot")
            if command.booking_slot_ids:
                links = links.filter(pk__in=command.booking_slot_ids)
                if len(links) != len(set(command.booking_slot_ids)):
                    raise BookingValidationError("Some slots do not belong to this booking")

            now = timezone.now()
            arrived = [link.code for link in links if link.mark_arrived(now)]

            if arrived:
                uow.add_event(CustomerArrived(
                    aggregate_id=booking.pk,
                    booking_id=booking.pk,
                    venue_id=booking.venue_id,
                    codes=arrived,
                    checked_in_by=command.checked_in_by,
                ))

        if arrived:
            logger.info(f"Booking {booking.pk}: customer arrived at {', '.join(arrived)}")
        return arrived


def register_handlers(bus):
    """Wire every booking command to its handler"""
    bus.register_command_handler(CreateBookingCommand, CreateBookingHandler().handle)
    bus.register_command_handler(ConfirmBookingCommand, ConfirmBookingHandler().handle)
    bus.register_command_handler(FailBookingPaymentCommand, FailBookingPaymentHandler().handle)
    bus.register_command_handler(CancelBookingCommand, CancelBookingHandler().handle)
    bus.register_command_handler(ExpireBookingCommand, ExpireBookingHandler().handle)
    bus.register_command_handler(CompleteBookingCommand, CompleteBookingHandler().handle)
    bus.register_command_handler(MarkCustomerArrivedCommand, MarkCustomerArrivedHandler().handle)
