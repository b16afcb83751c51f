from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional

from pygame.math import Vector2

from ..core.gap import GapCandidate
from ..utils.math2d import _clamp_value, _logistic
from .gaps import gap_area, gap_bounds

if TYPE_CHECKING:
    from ..core.agent import Agent
    from ..core.interfaces import SpatialQuery
    from ..core.occupancy import OccupancyGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SeekingPlan:
    sub_destination: Vector2
    duration: float
    speed: float
    drift: Vector2
    limiter_count: int


def seeking_probability(position: Vector2, start: Vector2, destination: Vector2, scale: float) -> float:
    """clamp(scale * |destination - position| / |position - start|, 0, 1)."""
    remaining = (destination - position).length()
    travelled = (position - start).length()
    if travelled <= 0.0:
        return 1.0 if remaining > 0.0 and scale > 0.0 else 0.0
    return _clamp_value(scale * remaining / travelled, 0.0, 1.0)


def gap_seeker_speed(area: float, max_speed: float, radius: float, alpha: float, beta: float) -> float:
    """Logistic in gap area with its inflection at alpha * 4r^2, saturating at max_speed."""
    min_area = 4.0 * radius * radius
    return max_speed * _logistic(beta * (area - alpha * min_area))


def detect_limiters(
    grid: OccupancyGrid, candidate: GapCandidate, spatial: SpatialQuery, exclude_id: int
) -> List[Agent]:
    center, half_extents = gap_bounds(grid, candidate.gap)
    return [other for other in spatial.query_agents_in_volume(center, half_extents) if other.id != exclude_id]


def estimate_drift(limiters: Iterable[Agent]) -> Vector2:
    total = Vector2()
    count = 0
    for limiter in limiters:
        total += limiter.velocity
        count += 1
    if count == 0:
        return total
    return total / count


def plan_seeking(
    grid: OccupancyGrid, agent: Agent, candidate: GapCandidate, spatial: SpatialQuery
) -> Optional[SeekingPlan]:
    limiters = detect_limiters(grid, candidate, spatial, agent.id)
    drift = estimate_drift(limiters)
    config = agent.config
    speed = gap_seeker_speed(
        gap_area(grid, candidate.gap), config.max_speed, config.radius, config.alpha, config.beta
    )
    if speed <= 0.0:
        logger.warning("Agent %d: non-positive gap seeker speed for gap %s", agent.id, candidate.gap)
        return None
    duration = candidate.agent_to_center.length() / speed
    sub_destination = candidate.center + drift * duration
    logger.debug(
        "Agent %d: %d limiters, drift=%s, speed=%.3f, duration=%.3f",
        agent.id,
        len(limiters),
        drift,
        speed,
        duration,
    )
    return SeekingPlan(
        sub_destination=sub_destination,
        duration=duration,
        speed=speed,
        drift=drift,
        limiter_count=len(limiters),
    )
