"""
Parking grid geometry

A venue with N slots is laid out as a near-square grid, at most
``max_columns`` wide, filled row by row. The last row may be partial.
"""

from dataclasses import dataclass
from math import ceil, sqrt
from typing import Iterator

from shared.domain.value_objects import SlotPosition

DEFAULT_MAX_COLUMNS = 8


@dataclass(frozen=True)
class GridShape:
    total: int
    max_columns: int = DEFAULT_MAX_COLUMNS

    @property
    def columns(self) -> int:
        if self.total <= 0:
            return 0
        return min(self.max_columns, ceil(sqrt(self.total)))

    @property
    def rows(self) -> int:
        if self.total <= 0:
            return 0
        return ceil(self.total / self.columns)

    def contains(self, position: SlotPosition) -> bool:
        if self.total <= 0:
            return False
        if position.row > self.rows or position.column > self.columns:
            return False
        index = (position.row - 1) * self.columns + position.column
        return index <= self.total

    def positions(self) -> Iterator[SlotPosition]:
        """Every slot of the grid in row-major order."""
        for index in range(self.total):
            row, column = divmod(index, self.columns)
            yield SlotPosition(row + 1, column + 1)

    def __len__(self) -> int:
        return max(self.total, 0)
