"""
Slot Inventory Aggregate

The consistency boundary for one venue's parking grid. Every claim and
release of slots goes through it.

Layers that keep a slot from being sold twice:
1. Domain validation: validate_selection() / claim() check the
   selection against the reserved slots loaded under the venue lock
2. Pessimistic locking: the venue row is locked with SELECT FOR UPDATE
   while the inventory is loaded and written
3. Database constraint: one ParkingSlot row per (venue, row, column)
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from shared.domain.base import Aggregate
from shared.domain.value_objects import SlotPosition

from apps.parking.domain.events import SlotsClaimed, SlotsReleased
from apps.parking.domain.grid import GridShape
from apps.parking.exceptions import InvalidSelectionError, SlotUnavailableError


def parse_selection(codes: Iterable[str]) -> List[SlotPosition]:
    """
    Turn raw slot codes into positions

    Raises:
        InvalidSelectionError: empty selection, malformed or duplicated code
    """
    if isinstance(codes, str):
        codes = [codes]
    positions: List[SlotPosition] = []
    seen = set()
    for code in codes or []:
        try:
            position = SlotPosition.parse(code)
        except ValueError as exc:
            raise InvalidSelectionError(str(exc)) from exc
        if position in seen:
            raise InvalidSelectionError(f"Slot {position.code} selected more than once")
        seen.add(position)
        positions.append(position)
    if not positions:
        raise InvalidSelectionError("Select at least one parking slot")
    return positions


@dataclass(eq=False)
class SlotInventory(Aggregate):
    """
    Inventory Aggregate Root

    ``reserved`` maps each reserved position to the booking holding it.

    Usage:
        inventory = load_inventory(venue)      # under the venue lock
        inventory.claim(booking.id, positions)
        uow.collect_events(inventory)
    """

    venue_id: int = 0
    grid: GridShape = field(default_factory=lambda: GridShape(0))
    reserved: Dict[SlotPosition, object] = field(default_factory=dict)
    max_per_booking: int = 1

    def validate_selection(self, positions: List[SlotPosition]):
        """
        Raises:
            InvalidSelectionError: empty, duplicated, outside the grid or too many
            SlotUnavailableError: some positions are already reserved
        """
        if not positions:
            raise InvalidSelectionError("Select at least one parking slot")
        if len(set(positions)) != len(positions):
            raise InvalidSelectionError("A slot was selected more than once")
        if len(positions) > self.max_per_booking:
            raise InvalidSelectionError(
                f"At most {self.max_per_booking} slot(s) can be booked at once"
            )

        outside = [p.code for p in positions if not self.grid.contains(p)]
        if outside:
            raise InvalidSelectionError(f"Slots outside the parking grid: {', '.join(outside)}")

        taken = [p.code for p in positions if p in self.reserved]
        if taken:
            raise SlotUnavailableError(taken)

    def can_claim(self, positions: List[SlotPosition]) -> bool:
        try:
            self.validate_selection(positions)
        except (InvalidSelectionError, SlotUnavailableError):
            return False
        return True

    def claim(self, booking_id, positions: List[SlotPosition]) -> List[SlotPosition]:
        """Reserve ``positions`` for ``booking_id``; all or nothing."""
        self.validate_selection(positions)

        claimed = sorted(positions)
        for position in claimed:
            self.reserved[position] = booking_id

        self.add_event(SlotsClaimed(
            aggregate_id=self.venue_id,
            venue_id=self.venue_id,
            booking_id=booking_id,
            codes=[p.code for p in claimed],
        ))
        return claimed

    def release(self, booking_id, reason: str = '') -> List[SlotPosition]:
        """
        Free every slot held by ``booking_id``

        Returns the released positions; empty when the booking held none.
        """
        released = sorted(p for p, holder in self.reserved.items() if holder == booking_id)
        for position in released:
            del self.reserved[position]

        if released:
            self.add_event(SlotsReleased(
                aggregate_id=self.venue_id,
                venue_id=self.venue_id,
                booking_id=booking_id,
                codes=[p.code for p in released],
                reason=reason,
            ))
        return released

    def is_reserved(self, position: SlotPosition) -> bool:
        return position in self.reserved

    @property
    def free_count(self) -> int:
        return len(self.grid) - len(self.reserved)

    def __repr__(self):
        return (
            f"SlotInventory(venue_id={self.venue_id}, grid={self.grid.rows}x{self.grid.columns}, "
            f"reserved={len(self.reserved)})"
        )
