from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

from pygame.math import Vector2

Cell = Tuple[int, int]


@dataclass(frozen=True, slots=True)
class Gap:
    """Axis-aligned free rectangle of grid cells, identified by its corner pair.

    `p1` holds the minimum corner and `p2` the maximum corner, both inclusive.
    """

    p1: Cell
    p2: Cell

    @property
    def cell_width(self) -> int:
        return self.p2[0] - self.p1[0] + 1

    @property
    def cell_height(self) -> int:
        return self.p2[1] - self.p1[1] + 1

    def cells(self) -> Iterator[Cell]:
        for x in range(self.p1[0], self.p2[0] + 1):
            for y in range(self.p1[1], self.p2[1] + 1):
                yield (x, y)

    def contains(self, cell: Cell) -> bool:
        return self.p1[0] <= cell[0] <= self.p2[0] and self.p1[1] <= cell[1] <= self.p2[1]


@dataclass(slots=True)
class GapCandidate:
    """A gap seen from one agent during selection."""

    gap: Gap
    center: Vector2
    agent_to_center: Vector2
