"""
Common Value Objects

Value objects used across the parking domains:
- Money: monetary amount with currency
- SlotPosition: row/column address of a slot inside a venue grid
- TimeWindow: parking window for hourly venues (universities, airports)
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from shared.domain.base import ValueObject

SUPPORTED_CURRENCIES = ('INR', 'USD', 'EUR')

_SLOT_CODE_RE = re.compile(r'^R(\d+)C(\d+)$', re.IGNORECASE)


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Immutable, never negative. Arithmetic is only allowed
    between amounts of the same currency.
    """
    amount: Decimal
    currency: str = 'INR'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def zero(cls, currency: str = 'INR') -> 'Money':
        return cls(Decimal('0.00'), currency)

    def _check_currency(self, other: 'Money'):
        if not isinstance(other, Money):
            raise TypeError("Money arithmetic requires Money operands")
        if self.currency != other.currency:
            raise ValueError(f"Currency mismatch: {self.currency} and {other.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor) -> 'Money':
        if not isinstance(factor, (int, Decimal)):
            raise TypeError("Money can only be multiplied by int or Decimal")
        return Money(self.amount * factor, self.currency)

    def quantized(self) -> Decimal:
        """Amount rounded to paise/cents, as stored in the database"""
        return self.amount.quantize(Decimal('0.01'))

    def __str__(self):
        return f"{self.quantized():,.2f} {self.currency}"


@dataclass(frozen=True, order=True)
class SlotPosition(ValueObject):
    """
    Slot coordinates, 1-based.

    Ordered row-major so sorted positions read like the grid.
    """
    row: int
    column: int

    def __post_init__(self):
        if self.row < 1 or self.column < 1:
            raise ValueError(f"Slot coordinates must be positive, got row={self.row} column={self.column}")

    @property
    def code(self) -> str:
        return f"R{self.row}C{self.column}"

    @classmethod
    def parse(cls, code: str) -> 'SlotPosition':
        """
        Parse a slot code such as ``R1C3``

        Raises:
            ValueError: the code is malformed or has zero coordinates
        """
        match = _SLOT_CODE_RE.match(str(code).strip())
        if not match:
            raise ValueError(f"Invalid slot code: {code!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    def __str__(self):
        return self.code


@dataclass(frozen=True)
class TimeWindow(ValueObject):
    """
    Parking window [start, end)

    Hourly venues bill every started hour.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Window start ({self.start}) must be before end ({self.end})")

    @property
    def billable_hours(self) -> int:
        seconds = (self.end - self.start).total_seconds()
        return max(1, math.ceil(seconds / 3600))

    def __str__(self):
        return f"{self.start:%d %b %Y %H:%M} - {self.end:%d %b %Y %H:%M}"
