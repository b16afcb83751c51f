from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List, Optional, Set, Tuple

from pygame.math import Vector2

from ..core.gap import Cell, Gap, GapCandidate
from ..utils.math2d import _unsigned_angle

if TYPE_CHECKING:
    from ..core.agent import Agent
    from ..core.occupancy import OccupancyGrid
    from ..core.rng import DeterministicRng

logger = logging.getLogger(__name__)


def gap_center(grid: OccupancyGrid, gap: Gap) -> Vector2:
    return (grid.cell_to_world(*gap.p1) + grid.cell_to_world(*gap.p2)) / 2


def gap_extent(grid: OccupancyGrid, gap: Gap) -> Tuple[float, float]:
    """World width and height measured between the two corner positions."""
    p1 = grid.cell_to_world(*gap.p1)
    p2 = grid.cell_to_world(*gap.p2)
    return abs(p2.x - p1.x), abs(p2.y - p1.y)


def gap_area(grid: OccupancyGrid, gap: Gap) -> float:
    width, height = gap_extent(grid, gap)
    return width * height


def gap_bounds(grid: OccupancyGrid, gap: Gap) -> Tuple[Vector2, Vector2]:
    """Centre and half extents of the rectangle covering every cell of the gap."""
    low = grid.cell_to_world(*gap.p1)
    high = grid.cell_to_world(gap.p2[0] + 1, gap.p2[1] + 1)
    return (low + high) / 2, (high - low) / 2


def exploration_area(grid: OccupancyGrid, position: Vector2, search_radius: int) -> List[Cell]:
    xs, ys = grid.window(position, search_radius)
    return [(x, y) for x in xs for y in ys if grid.is_free(x, y)]


def _row_free(free: Set[Cell], x_start: int, x_stop: int, y: int) -> bool:
    return all((x, y) in free for x in range(x_start, x_stop + 1))


def _column_free(free: Set[Cell], y_start: int, y_stop: int, x: int) -> bool:
    return all((x, y) in free for y in range(y_start, y_stop + 1))


def grow_gap(seed: Cell, free: Set[Cell]) -> Gap:
    """Grow a rectangle from `seed` left, up, right, then down.

    Each direction sees the bounds fixed by the ones before it, so the result
    depends on the order and is not necessarily the largest free rectangle
    containing the seed.
    """
    x1, y1 = seed
    x2, y2 = seed

    while (x1 - 1, y1) in free:
        x1 -= 1

    while _row_free(free, x1, seed[0], y1 - 1):
        y1 -= 1

    while _column_free(free, y1, y2, x2 + 1):
        x2 += 1

    while _row_free(free, x1, x2, y2 + 1):
        y2 += 1

    return Gap((x1, y1), (x2, y2))


def detect_gaps(
    grid: OccupancyGrid,
    position: Vector2,
    search_radius: int,
    seeds: int,
    rng: DeterministicRng,
) -> List[Gap]:
    explored = exploration_area(grid, position, search_radius)
    if not explored:
        return []
    free = set(explored)
    detected: List[Gap] = []
    for seed in rng.sample(explored, seeds):
        gap = grow_gap(seed, free)
        if gap not in detected:
            detected.append(gap)
    logger.debug("Detected %d gaps from %d free cells around %s", len(detected), len(explored), position)
    return detected


def select_gap(
    grid: OccupancyGrid,
    gaps: Iterable[Gap],
    position: Vector2,
    forward: Vector2,
    destination: Vector2,
    vision_radius: float,
    vision_angle: float,
    min_size: float,
    destination_threshold_angle: float,
) -> Optional[GapCandidate]:
    to_destination = destination - position

    visible: List[GapCandidate] = []
    for gap in gaps:
        center = gap_center(grid, gap)
        offset = center - position
        if offset.length() > vision_radius or _unsigned_angle(forward, offset) > vision_angle / 2:
            continue
        visible.append(GapCandidate(gap=gap, center=center, agent_to_center=offset))

    roomy = [candidate for candidate in visible if min(gap_extent(grid, candidate.gap)) >= min_size]

    aligned = [
        candidate
        for candidate in roomy
        if _unsigned_angle(to_destination, candidate.agent_to_center) <= destination_threshold_angle
    ]
    # TODO: skip gaps already being sought by a closer agent.
    if not aligned:
        return None

    best = aligned[0]
    best_angle = _unsigned_angle(to_destination, best.agent_to_center)
    for candidate in aligned[1:]:
        angle = _unsigned_angle(to_destination, candidate.agent_to_center)
        if angle < best_angle:
            best = candidate
            best_angle = angle
    return best


def select_gap_for(grid: OccupancyGrid, agent: Agent, gaps: Iterable[Gap]) -> Optional[GapCandidate]:
    config = agent.config
    return select_gap(
        grid,
        gaps,
        agent.position,
        agent.forward,
        agent.destination,
        vision_radius=config.vision_radius,
        vision_angle=config.vision_angle,
        min_size=2.0 * agent.footprint,
        destination_threshold_angle=config.destination_threshold_angle,
    )
