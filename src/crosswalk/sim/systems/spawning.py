from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Sequence

from pygame.math import Vector2

from ..core.agent import DEFAULT, Agent
from ..utils.math2d import _heading_from_velocity

if TYPE_CHECKING:
    from ..core.config import AgentConfig, SpawnPointConfig
    from ..core.rng import DeterministicRng

logger = logging.getLogger(__name__)


def place_agent(agent: Agent, spawn: SpawnPointConfig, rng: DeterministicRng) -> None:
    """Put `agent` back at its spawn point with a fresh destination and no commitments."""
    position = Vector2(spawn.position)
    if spawn.jitter > 0.0:
        position += rng.next_unit_circle() * rng.next_range(0.0, spawn.jitter)
    agent.position = position
    agent.starting_position = Vector2(position)
    agent.destination = Vector2(spawn.destination)
    agent.velocity = Vector2()
    agent.heading = _heading_from_velocity(agent.destination - position)
    agent.behaviour = DEFAULT


def create_agents(
    spawn_points: Sequence[SpawnPointConfig], config: AgentConfig, rng: DeterministicRng, first_id: int = 0
) -> List[Agent]:
    agents: List[Agent] = []
    next_id = first_id
    for index, spawn in enumerate(spawn_points):
        for _ in range(max(0, spawn.count)):
            agent = Agent(
                id=next_id,
                position=Vector2(spawn.position),
                destination=Vector2(spawn.destination),
                starting_position=Vector2(spawn.position),
                config=config,
                spawn_index=index,
            )
            place_agent(agent, spawn, rng)
            agents.append(agent)
            next_id += 1
    logger.debug("Spawned %d agents from %d spawn points", len(agents), len(spawn_points))
    return agents
