from __future__ import annotations

from typing import TYPE_CHECKING

from pygame.math import Vector2

from ..utils.math2d import _clamp_length, _heading_from_velocity

if TYPE_CHECKING:
    from ..core.agent import Agent


class KinematicNavigator:
    """Straight-line mover toward the current sub-destination.

    Stands in for a real navigation stack: no path planning and no avoidance.
    The agent halts once it is within its stopping distance.
    """

    def __init__(self, agent: Agent) -> None:
        self._agent = agent
        self._destination = Vector2(agent.destination)
        self._paused = False

    @property
    def destination(self) -> Vector2:
        return Vector2(self._destination)

    @property
    def remaining_distance(self) -> float:
        return self._agent.position.distance_to(self._destination)

    @property
    def velocity(self) -> Vector2:
        return Vector2(self._agent.velocity)

    @property
    def is_at_rest(self) -> bool:
        return self.remaining_distance <= self._agent.config.stopping_distance

    @property
    def paused(self) -> bool:
        return self._paused

    def set_sub_destination(self, point: Vector2) -> None:
        self._destination = Vector2(point)

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def reset(self) -> None:
        self._destination = Vector2(self._agent.destination)
        self._paused = False

    def step(self, dt: float) -> None:
        agent = self._agent
        if self._paused or dt <= 0.0 or self.is_at_rest:
            agent.velocity = Vector2()
            return
        velocity = _clamp_length((self._destination - agent.position) / dt, agent.config.max_speed)
        agent.velocity = velocity
        agent.position += velocity * dt
        if velocity.length_squared() > 1e-12:
            agent.heading = _heading_from_velocity(velocity)
