"""Errors raised by booking use cases."""

from __future__ import annotations


class BookingError(Exception):
    """Base class for booking failures that map to a 400 response."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BookingStateError(BookingError):
    """The requested transition is not allowed from the current status."""


class BookingValidationError(BookingError):
    """The booking request itself is invalid (inactive venue, bad window...)."""
