from __future__ import annotations

import logging
import math
from typing import Callable, List, Tuple

from pygame.math import Vector2

from .gap import Cell, Gap

logger = logging.getLogger(__name__)

FREE = 0
OCCUPIED = 1
_SNAP_DIGITS = 9

# (cell_center, half_extents) -> occupied?
OccupiedCellTest = Callable[[Vector2, Vector2], bool]


class OccupancyGrid:
    """Discretised occupancy of the ground plane.

    Flags are only as fresh as the last `refresh`; the grid never schedules
    itself. Reads outside the grid report free cells and writes outside the
    grid are dropped.
    """

    def __init__(self, width: int, height: int, cell_size: float, origin: Vector2 | None = None) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        if cell_size <= 0:
            raise ValueError(f"Cell size must be positive, got {cell_size}")
        self._width = int(width)
        self._height = int(height)
        self._cell_size = float(cell_size)
        self._origin = Vector2(origin) if origin is not None else Vector2()
        self._cells: List[List[int]] = [[FREE] * self._height for _ in range(self._width)]

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def cell_size(self) -> float:
        return self._cell_size

    @property
    def origin(self) -> Vector2:
        return Vector2(self._origin)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def world_to_cell(self, position: Vector2) -> Cell:
        # Snap before flooring so cell corners that are not exact in binary
        # still map back to their own cell.
        return (
            math.floor(round((position.x - self._origin.x) / self._cell_size, _SNAP_DIGITS)),
            math.floor(round((position.y - self._origin.y) / self._cell_size, _SNAP_DIGITS)),
        )

    def cell_to_world(self, x: int, y: int) -> Vector2:
        return Vector2(x * self._cell_size + self._origin.x, y * self._cell_size + self._origin.y)

    def cell_center(self, x: int, y: int) -> Vector2:
        half = self._cell_size / 2.0
        return self.cell_to_world(x, y) + Vector2(half, half)

    def set_occupied(self, x: int, y: int, flag: int) -> None:
        if self.in_bounds(x, y):
            self._cells[x][y] = OCCUPIED if flag else FREE

    def get_occupied(self, x: int, y: int) -> int:
        if self.in_bounds(x, y):
            return self._cells[x][y]
        return FREE

    def is_free(self, x: int, y: int) -> bool:
        return self.get_occupied(x, y) == FREE

    def set_occupied_at(self, position: Vector2, flag: int) -> None:
        self.set_occupied(*self.world_to_cell(position), flag)

    def get_occupied_at(self, position: Vector2) -> int:
        return self.get_occupied(*self.world_to_cell(position))

    def refresh(self, occupied_cell_test: OccupiedCellTest) -> int:
        """Rescan every cell against `occupied_cell_test` and return the occupied count."""
        half = self._cell_size / 2.0
        half_extents = Vector2(half, half)
        occupied = 0
        for x in range(self._width):
            column = self._cells[x]
            for y in range(self._height):
                flag = OCCUPIED if occupied_cell_test(self.cell_center(x, y), half_extents) else FREE
                column[y] = flag
                occupied += flag
        logger.debug("Occupancy refreshed: %d/%d cells occupied", occupied, self._width * self._height)
        return occupied

    def occupied_count(self) -> int:
        return sum(sum(column) for column in self._cells)

    def window(self, position: Vector2, radius: int) -> Tuple[range, range]:
        """Cell ranges of the detection window around `position`, clipped to the grid."""
        cx, cy = self.world_to_cell(position)
        xs = range(max(0, cx - radius), min(self._width, cx + radius))
        ys = range(max(0, cy - radius), min(self._height, cy + radius))
        return xs, ys

    def search_area(self, position: Vector2, radius: int) -> Gap | None:
        xs, ys = self.window(position, radius)
        if not xs or not ys:
            return None
        return Gap((xs.start, ys.start), (xs.stop - 1, ys.stop - 1))

    def rows(self) -> List[List[int]]:
        """Occupancy as `height` rows of `width` flags."""
        return [[self._cells[x][y] for x in range(self._width)] for y in range(self._height)]
