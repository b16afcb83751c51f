from __future__ import annotations

from pygame.math import Vector2

from crosswalk.sim.core.gap import Gap
from crosswalk.sim.core.occupancy import OCCUPIED, OccupancyGrid
from crosswalk.sim.core.rng import DeterministicRng
from crosswalk.sim.systems.gaps import (
    detect_gaps,
    exploration_area,
    gap_area,
    gap_bounds,
    gap_center,
    gap_extent,
    grow_gap,
)

from helpers import ScriptedRng

BLOCK = {(4, 4), (4, 5), (5, 4), (5, 5)}


def _blocked_grid() -> OccupancyGrid:
    grid = OccupancyGrid(10, 10, cell_size=1.0)
    for x, y in BLOCK:
        grid.set_occupied(x, y, OCCUPIED)
    return grid


def test_seed_in_corner_is_bounded_by_occupied_block():
    grid = _blocked_grid()
    gaps = detect_gaps(grid, Vector2(0.0, 0.0), search_radius=10, seeds=1, rng=ScriptedRng(seed_cells=[(0, 0)]))

    assert gaps == [Gap((0, 0), (9, 3))]
    gap = gaps[0]
    next_row = {(x, gap.p2[1] + 1) for x in range(gap.p1[0], gap.p2[0] + 1)}
    assert next_row & BLOCK


def test_growth_order_is_left_up_right_down():
    grid = _blocked_grid()
    free = set(exploration_area(grid, Vector2(0.0, 0.0), 10))

    # Left runs first and reaches x=0; the block then caps "right" at x=3.
    assert grow_gap((2, 5), free) == Gap((0, 0), (3, 9))
    # Starting right of the block, left stops at x=6.
    assert grow_gap((7, 5), free) == Gap((6, 0), (9, 9))


def test_detected_gaps_are_free_ordered_and_unique():
    rng = DeterministicRng(3)
    grid = OccupancyGrid(16, 16, cell_size=1.0)
    for x in range(grid.width):
        for y in range(grid.height):
            if rng.next_float() < 0.3:
                grid.set_occupied(x, y, OCCUPIED)

    position = Vector2(8.0, 8.0)
    gaps = detect_gaps(grid, position, search_radius=5, seeds=20, rng=rng)
    window_x, window_y = grid.window(position, 5)

    assert 0 < len(gaps) <= 20
    assert len(set(gaps)) == len(gaps)
    for gap in gaps:
        assert gap.p1[0] <= gap.p2[0] and gap.p1[1] <= gap.p2[1]
        for x, y in gap.cells():
            assert grid.is_free(x, y)
            assert x in window_x and y in window_y


def test_identical_growth_is_reported_once():
    grid = OccupancyGrid(6, 6, cell_size=1.0)
    gaps = detect_gaps(grid, Vector2(3.0, 3.0), search_radius=6, seeds=5, rng=ScriptedRng())
    assert gaps == [Gap((0, 0), (5, 5))]


def test_no_free_cells_yields_no_gaps():
    grid = OccupancyGrid(4, 4, cell_size=1.0)
    for x in range(4):
        for y in range(4):
            grid.set_occupied(x, y, OCCUPIED)
    assert detect_gaps(grid, Vector2(2.0, 2.0), search_radius=3, seeds=3, rng=DeterministicRng(1)) == []


def test_more_seeds_than_free_cells_degrades_gracefully():
    grid = OccupancyGrid(3, 3, cell_size=1.0)
    for x in range(3):
        for y in range(3):
            if (x, y) not in {(0, 0), (2, 2)}:
                grid.set_occupied(x, y, OCCUPIED)

    gaps = detect_gaps(grid, Vector2(1.5, 1.5), search_radius=5, seeds=10, rng=DeterministicRng(9))
    assert sorted(gaps, key=lambda gap: gap.p1) == [Gap((0, 0), (0, 0)), Gap((2, 2), (2, 2))]


def test_gap_world_geometry_uses_corner_positions():
    grid = OccupancyGrid(10, 10, cell_size=0.5, origin=Vector2(1.0, 1.0))
    gap = Gap((2, 4), (6, 6))

    assert gap_center(grid, gap) == Vector2(3.0, 3.5)
    assert gap_extent(grid, gap) == (2.0, 1.0)
    assert gap_area(grid, gap) == 2.0
    center, half = gap_bounds(grid, gap)
    assert center == Vector2(3.25, 3.75)
    assert half == Vector2(1.25, 0.75)


def test_gap_cell_dimensions_and_membership():
    gap = Gap((2, 1), (4, 5))

    assert (gap.cell_width, gap.cell_height) == (3, 5)
    assert len(list(gap.cells())) == 15
    assert gap.contains((2, 5))
    assert gap.contains((4, 1))
    assert not gap.contains((5, 3))
    assert not gap.contains((3, 0))
