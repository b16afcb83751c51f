from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Tuple

from pygame.math import Vector2

if TYPE_CHECKING:
    from ..core.agent import Agent
    from ..core.config import ObstacleConfig


@dataclass(frozen=True, slots=True)
class Obstacle:
    center: Vector2
    half_extents: Vector2

    @staticmethod
    def from_config(config: ObstacleConfig) -> "Obstacle":
        half = Vector2(config.size[0] / 2, config.size[1] / 2)
        return Obstacle(center=Vector2(config.position) + half, half_extents=half)

    def overlaps_box(self, center: Vector2, half_extents: Vector2) -> bool:
        return (
            abs(self.center.x - center.x) < self.half_extents.x + half_extents.x
            and abs(self.center.y - center.y) < self.half_extents.y + half_extents.y
        )


def _circle_overlaps_box(point: Vector2, radius: float, center: Vector2, half_extents: Vector2) -> bool:
    dx = max(abs(point.x - center.x) - half_extents.x, 0.0)
    dy = max(abs(point.y - center.y) - half_extents.y, 0.0)
    return dx * dx + dy * dy < radius * radius or (dx == 0.0 and dy == 0.0)


class AgentSpatialHash:
    def __init__(self, cell_size: float) -> None:
        self._cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List["Agent"]] = {}
        self._active_keys: List[Tuple[int, int]] = []
        self._max_footprint = 0.0

    def clear(self) -> None:
        for key in self._active_keys:
            bucket = self._cells.get(key)
            if bucket:
                bucket.clear()
        self._active_keys.clear()
        self._max_footprint = 0.0

    def insert(self, agent: "Agent") -> None:
        key = self._cell_key(agent.position)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
            self._active_keys.append(key)
        elif not bucket:
            # Bucket exists but was cleared since the last rebuild; mark it active again.
            self._active_keys.append(key)
        bucket.append(agent)
        self._max_footprint = max(self._max_footprint, agent.footprint)

    def query_box(self, center: Vector2, half_extents: Vector2) -> List["Agent"]:
        pad = self._max_footprint
        low_x, low_y = self._cell_key(Vector2(center.x - half_extents.x - pad, center.y - half_extents.y - pad))
        high_x, high_y = self._cell_key(Vector2(center.x + half_extents.x + pad, center.y + half_extents.y + pad))
        found: List["Agent"] = []
        for cx in range(low_x, high_x + 1):
            for cy in range(low_y, high_y + 1):
                bucket = self._cells.get((cx, cy))
                if not bucket:
                    continue
                for agent in bucket:
                    if _circle_overlaps_box(agent.position, agent.footprint, center, half_extents):
                        found.append(agent)
        found.sort(key=lambda agent: agent.id)
        return found

    def _cell_key(self, position: Vector2) -> Tuple[int, int]:
        return (int(math.floor(position.x / self._cell_size)), int(math.floor(position.y / self._cell_size)))


class SceneQuery:
    """Spatial queries against static obstacles and the agents' last known positions."""

    def __init__(self, obstacles: Iterable[Obstacle], cell_size: float) -> None:
        self._obstacles = list(obstacles)
        self._agents = AgentSpatialHash(cell_size)

    @property
    def obstacles(self) -> List[Obstacle]:
        return self._obstacles

    def rebuild(self, agents: Iterable["Agent"]) -> None:
        self._agents.clear()
        for agent in agents:
            self._agents.insert(agent)

    def occupied_cell_test(self, center: Vector2, half_extents: Vector2) -> bool:
        if any(obstacle.overlaps_box(center, half_extents) for obstacle in self._obstacles):
            return True
        return bool(self._agents.query_box(center, half_extents))

    def query_agents_in_volume(self, center: Vector2, half_extents: Vector2) -> List["Agent"]:
        return self._agents.query_box(center, half_extents)
