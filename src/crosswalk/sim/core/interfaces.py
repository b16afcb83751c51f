from __future__ import annotations

from typing import TYPE_CHECKING, List, Protocol

from pygame.math import Vector2

if TYPE_CHECKING:
    from .agent import Agent


class Navigator(Protocol):
    """Moves one agent toward its current sub-destination."""

    @property
    def destination(self) -> Vector2: ...

    @property
    def remaining_distance(self) -> float: ...

    @property
    def velocity(self) -> Vector2: ...

    @property
    def is_at_rest(self) -> bool: ...

    def set_sub_destination(self, point: Vector2) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...


class SpatialQuery(Protocol):
    def occupied_cell_test(self, center: Vector2, half_extents: Vector2) -> bool: ...

    def query_agents_in_volume(self, center: Vector2, half_extents: Vector2) -> List["Agent"]: ...


class Respawner(Protocol):
    def respawn(self, agent: "Agent") -> bool:
        """Return whether the agent was actually moved back to a spawn point."""
        ...
