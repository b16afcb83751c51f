from __future__ import annotations

import pytest
from pygame.math import Vector2

from crosswalk.sim.core.gap import Gap
from crosswalk.sim.core.occupancy import FREE, OCCUPIED, OccupancyGrid


def test_cell_world_round_trip_for_every_cell():
    grid = OccupancyGrid(10, 8, cell_size=0.5, origin=Vector2(-2.0, 3.0))
    for x in range(grid.width):
        for y in range(grid.height):
            assert grid.world_to_cell(grid.cell_to_world(x, y)) == (x, y)


def test_round_trip_survives_cell_sizes_without_exact_binary_form():
    grid = OccupancyGrid(50, 50, cell_size=0.1, origin=Vector2(0.3, -1.7))
    mismatched = [
        (x, y)
        for x in range(grid.width)
        for y in range(grid.height)
        if grid.world_to_cell(grid.cell_to_world(x, y)) != (x, y)
    ]
    assert mismatched == []
    assert grid.world_to_cell(Vector2(0.3 + 0.25, -1.7 + 0.05)) == (2, 0)


def test_world_to_cell_floors_negative_offsets():
    grid = OccupancyGrid(4, 4, cell_size=1.0)
    assert grid.world_to_cell(Vector2(-0.1, -0.1)) == (-1, -1)
    assert grid.world_to_cell(Vector2(3.99, 0.5)) == (3, 0)
    assert grid.cell_center(1, 2) == Vector2(1.5, 2.5)


def test_out_of_range_access_is_free_and_silent():
    grid = OccupancyGrid(3, 3, cell_size=1.0)
    grid.set_occupied(-1, 0, OCCUPIED)
    grid.set_occupied(3, 3, OCCUPIED)
    grid.set_occupied(0, 99, OCCUPIED)

    assert grid.occupied_count() == 0
    assert grid.get_occupied(-1, 0) == FREE
    assert grid.get_occupied(5, 5) == FREE

    grid.set_occupied(1, 1, OCCUPIED)
    assert grid.get_occupied(1, 1) == OCCUPIED
    assert grid.get_occupied_at(Vector2(1.5, 1.5)) == OCCUPIED


@pytest.mark.parametrize("width,height,cell_size", [(0, 5, 1.0), (5, -1, 1.0), (5, 5, 0.0)])
def test_malformed_grid_is_rejected(width, height, cell_size):
    with pytest.raises(ValueError):
        OccupancyGrid(width, height, cell_size)


def test_refresh_overwrites_every_cell():
    grid = OccupancyGrid(6, 4, cell_size=0.5)
    grid.set_occupied(5, 3, OCCUPIED)
    queried = []

    def left_strip(center: Vector2, half_extents: Vector2) -> bool:
        queried.append((Vector2(center), Vector2(half_extents)))
        return center.x < 1.0

    occupied = grid.refresh(left_strip)

    assert len(queried) == 24
    assert all(half == Vector2(0.25, 0.25) for _, half in queried)
    assert occupied == 2 * grid.height
    assert grid.get_occupied(0, 2) == OCCUPIED
    assert grid.get_occupied(1, 2) == OCCUPIED
    assert grid.get_occupied(2, 2) == FREE
    assert grid.get_occupied(5, 3) == FREE


def test_search_area_is_clipped_to_grid():
    grid = OccupancyGrid(10, 10, cell_size=1.0)
    assert grid.search_area(Vector2(0.5, 0.5), 3) == Gap((0, 0), (2, 2))
    assert grid.search_area(Vector2(5.5, 5.5), 2) == Gap((3, 3), (6, 6))
    assert grid.search_area(Vector2(100.0, 100.0), 3) is None


def test_rows_are_height_by_width():
    grid = OccupancyGrid(3, 2, cell_size=1.0)
    grid.set_occupied(2, 0, OCCUPIED)
    assert grid.rows() == [[0, 0, 1], [0, 0, 0]]


def test_world_position_access_maps_to_containing_cell():
    grid = OccupancyGrid(4, 4, 0.5)
    grid.set_occupied_at(Vector2(1.2, 0.3), OCCUPIED)

    assert grid.get_occupied(2, 0) == OCCUPIED
    assert grid.get_occupied_at(Vector2(1.49, 0.01)) == OCCUPIED
    assert grid.get_occupied_at(Vector2(1.5, 0.3)) == FREE
    assert grid.occupied_count() == 1
