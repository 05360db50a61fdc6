"""Errors raised by the reservation engine."""

from __future__ import annotations

from typing import Iterable


class ReservationError(Exception):
    """Base class for reservation failures."""

    default_message = "Reservation failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidSelectionError(ReservationError):
    """The requested slot codes are malformed, duplicated or outside the grid."""

    default_message = "Invalid slot selection."


class SlotUnavailableError(ReservationError):
    """One or more requested slots are already reserved."""

    default_message = "Selected slots are no longer available."

    def __init__(self, codes: Iterable[str] = (), message: str | None = None):
        self.codes = sorted(codes)
        if message is None and self.codes:
            message = f"Slots already reserved: {', '.join(self.codes)}"
        super().__init__(message)


class CapacityExceededError(ReservationError):
    """The venue counter has fewer free slots than requested."""

    default_message = "Not enough parking slots available."
