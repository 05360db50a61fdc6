"""Pure domain tests for the parking grid and the slot inventory aggregate."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from apps.parking.domain.events import SlotsClaimed, SlotsReleased
from apps.parking.domain.grid import GridShape
from apps.parking.domain.inventory import SlotInventory, parse_selection
from apps.parking.exceptions import InvalidSelectionError, SlotUnavailableError
from shared.domain.value_objects import Money, SlotPosition, TimeWindow


@pytest.mark.parametrize(
    "total, columns, rows",
    [(1, 1, 1), (10, 4, 3), (16, 4, 4), (50, 8, 7), (100, 8, 13), (200, 8, 25)],
)
def test_grid_shape(total: int, columns: int, rows: int) -> None:
    grid = GridShape(total)
    assert (grid.columns, grid.rows) == (columns, rows)


def test_partial_last_row_is_not_part_of_grid() -> None:
    grid = GridShape(10)  # 4 columns, 3 rows, last row has 2 slots

    assert grid.contains(SlotPosition(3, 2))
    assert not grid.contains(SlotPosition(3, 3))
    assert not grid.contains(SlotPosition(1, 5))
    assert [p.code for p in grid.positions()][-3:] == ["R2C4", "R3C1", "R3C2"]
    assert len(list(grid.positions())) == 10


def test_parse_selection_rejects_bad_input() -> None:
    assert parse_selection(["r1c2", " R3C1 "]) == [SlotPosition(1, 2), SlotPosition(3, 1)]

    with pytest.raises(InvalidSelectionError):
        parse_selection([])
    with pytest.raises(InvalidSelectionError):
        parse_selection(["A1"])
    with pytest.raises(InvalidSelectionError):
        parse_selection(["R0C1"])
    with pytest.raises(InvalidSelectionError):
        parse_selection(["R1C1", "r1c1"])


def _inventory(**kwargs) -> SlotInventory:
    defaults = {"venue_id": 7, "grid": GridShape(10), "max_per_booking": 3}
    defaults.update(kwargs)
    return SlotInventory(**defaults)


def test_claim_is_all_or_nothing() -> None:
    inventory = _inventory(reserved={SlotPosition(1, 2): "other"})

    with pytest.raises(SlotUnavailableError) as excinfo:
        inventory.claim("mine", [SlotPosition(1, 1), SlotPosition(1, 2)])

    assert excinfo.value.codes == ["R1C2"]
    assert not inventory.is_reserved(SlotPosition(1, 1))
    assert inventory.events == []


def test_claim_and_release_emit_events() -> None:
    inventory = _inventory()

    claimed = inventory.claim("b1", [SlotPosition(2, 1), SlotPosition(1, 3)])

    assert [p.code for p in claimed] == ["R1C3", "R2C1"]
    assert inventory.free_count == 8
    assert isinstance(inventory.events[0], SlotsClaimed)
    assert inventory.events[0].codes == ["R1C3", "R2C1"]

    inventory.clear_events()
    assert len(inventory.release("b1", reason="cancelled")) == 2
    assert isinstance(inventory.events[0], SlotsReleased)
    assert inventory.events[0].reason == "cancelled"

    inventory.clear_events()
    assert inventory.release("b1") == []
    assert inventory.events == []


def test_selection_limits() -> None:
    inventory = _inventory(max_per_booking=1)

    with pytest.raises(InvalidSelectionError):
        inventory.validate_selection([SlotPosition(1, 1), SlotPosition(1, 2)])
    with pytest.raises(InvalidSelectionError):
        _inventory().validate_selection([SlotPosition(4, 1)])
    assert not inventory.can_claim([])
    assert inventory.can_claim([SlotPosition(3, 2)])


def test_money_and_time_window() -> None:
    assert Money(Decimal("20")) + Money("5.5") == Money(Decimal("25.5"))
    assert (Money(Decimal("40.00")) * 3).quantized() == Decimal("120.00")
    with pytest.raises(ValueError):
        Money(Decimal("1"), "INR") + Money(Decimal("1"), "USD")
    with pytest.raises(ValueError):
        Money(Decimal("-1"))

    start = datetime(2026, 3, 1, 9, 0)
    assert TimeWindow(start, start + timedelta(minutes=61)).billable_hours == 2
    assert TimeWindow(start, start + timedelta(minutes=10)).billable_hours == 1
    with pytest.raises(ValueError):
        TimeWindow(start, start)
