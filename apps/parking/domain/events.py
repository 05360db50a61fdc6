"""
Parking Domain Events

Published by the unit of work after a claim or release has committed.
"""

from dataclasses import dataclass, field
from typing import List

from shared.domain.base import DomainEvent


@dataclass
class SlotsClaimed(DomainEvent):
    """
    Event: slots were reserved for a booking

    The venue counter has already been decremented.
    """
    venue_id: int = field(kw_only=True)
    booking_id: object = field(kw_only=True)
    codes: List[str] = field(default_factory=list, kw_only=True)


@dataclass
class SlotsReleased(DomainEvent):
    """
    Event: slots held by a booking became available again

    Raised by cancellation, hold expiry and payment failure.
    """
    venue_id: int = field(kw_only=True)
    booking_id: object = field(kw_only=True)
    codes: List[str] = field(default_factory=list, kw_only=True)
    reason: str = field(default='', kw_only=True)
