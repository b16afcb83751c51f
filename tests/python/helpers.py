from __future__ import annotations

from typing import List, Sequence

from pygame.math import Vector2

from crosswalk.sim.core.agent import Agent
from crosswalk.sim.core.config import AgentConfig


def make_agent(
    agent_id: int,
    position: tuple[float, float] = (0.0, 0.0),
    destination: tuple[float, float] = (10.0, 0.0),
    start: tuple[float, float] | None = None,
    heading: float = 0.0,
    config: AgentConfig | None = None,
) -> Agent:
    return Agent(
        id=agent_id,
        position=Vector2(position),
        destination=Vector2(destination),
        starting_position=Vector2(start if start is not None else position),
        config=config or AgentConfig(),
        heading=heading,
    )


class ScriptedRng:
    """Replays queued floats (0.0 once exhausted) and picks seeds in a fixed order."""

    def __init__(self, floats: Sequence[float] = (), seed_cells: Sequence[tuple[int, int]] | None = None):
        self._floats = list(floats)
        self._seed_cells = list(seed_cells) if seed_cells is not None else None

    def next_float(self) -> float:
        if self._floats:
            return self._floats.pop(0)
        return 0.0

    def sample(self, items, count):
        if self._seed_cells is not None:
            return [cell for cell in self._seed_cells if cell in items][:count]
        return list(items)[:count]


class FakeNavigator:
    def __init__(self, agent: Agent):
        self._agent = agent
        self.destination = Vector2(agent.destination)
        self.remaining_distance = 100.0
        self.velocity = Vector2()
        self.paused = False
        self.history: List[Vector2] = []

    @property
    def is_at_rest(self) -> bool:
        return self.remaining_distance <= self._agent.config.stopping_distance

    def set_sub_destination(self, point: Vector2) -> None:
        self.destination = Vector2(point)
        self.history.append(Vector2(point))

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False


class FakeSpatial:
    """Returns a fixed agent list from every volume query."""

    def __init__(self, agents: Sequence[Agent] = ()):
        self.agents = list(agents)
        self.queries: List[tuple[Vector2, Vector2]] = []

    def occupied_cell_test(self, center: Vector2, half_extents: Vector2) -> bool:
        return False

    def query_agents_in_volume(self, center: Vector2, half_extents: Vector2) -> List[Agent]:
        self.queries.append((Vector2(center), Vector2(half_extents)))
        return list(self.agents)


class FakeRespawner:
    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.respawned: List[int] = []

    def respawn(self, agent: Agent) -> bool:
        self.respawned.append(agent.id)
        return self.accept
