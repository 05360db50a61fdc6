"""
Booking Domain Events

Events that represent things that have happened to a booking.
They are published after the surrounding transaction commits.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List
from uuid import UUID

from shared.domain.base import DomainEvent


@dataclass
class BookingCreated(DomainEvent):
    """
    Event: slots were claimed and a booking is waiting for payment

    Triggers:
    - Hold expiry is picked up by the reconciliation job
    """
    booking_id: UUID = field(kw_only=True)
    venue_id: int = field(kw_only=True)
    user_id: int = field(kw_only=True)
    codes: List[str] = field(default_factory=list, kw_only=True)
    amount: Decimal = field(default=Decimal('0'), kw_only=True)


@dataclass
class BookingConfirmed(DomainEvent):
    """
    Event: payment succeeded (PENDING/PAYMENT_PENDING -> CONFIRMED)

    Triggers:
    - Confirmation email with the PDF ticket
    """
    booking_id: UUID = field(kw_only=True)
    venue_id: int = field(kw_only=True)
    user_id: int = field(kw_only=True)
    reference_id: str = field(default='', kw_only=True)


@dataclass
class BookingPaymentFailed(DomainEvent):
    """Event: payment failed, slots were released"""
    booking_id: UUID = field(kw_only=True)
    venue_id: int = field(kw_only=True)
    reason: str = field(default='', kw_only=True)


@dataclass
class BookingCancelled(DomainEvent):
    """Event: cancelled by the customer or an admin, slots were released"""
    booking_id: UUID = field(kw_only=True)
    venue_id: int = field(kw_only=True)
    old_status: str = field(kw_only=True)
    reason: str = field(default='', kw_only=True)


@dataclass
class BookingExpired(DomainEvent):
    """Event: hold ran out without payment, slots were released"""
    booking_id: UUID = field(kw_only=True)
    venue_id: int = field(kw_only=True)


@dataclass
class BookingCompleted(DomainEvent):
    """Event: the parking window is over (CONFIRMED -> COMPLETED)"""
    booking_id: UUID = field(kw_only=True)
    venue_id: int = field(kw_only=True)


@dataclass
class CustomerArrived(DomainEvent):
    """Event: a vendor checked in one or more slots of a booking"""
    booking_id: UUID = field(kw_only=True)
    venue_id: int = field(kw_only=True)
    codes: List[str] = field(default_factory=list, kw_only=True)
    checked_in_by: int | None = field(default=None, kw_only=True)
