from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, List, Optional

from pygame.math import Vector2

from .agent import Agent, FollowingBehaviour, GapSeekingBehaviour, StopAndGoBehaviour
from .behaviour import BehaviourStateMachine
from .config import SimulationConfig
from .occupancy import OccupancyGrid
from .relations import FollowRelations
from .rng import DeterministicRng
from ..systems import metrics as metrics_system
from ..systems.navigation import KinematicNavigator
from ..systems.scene import Obstacle, SceneQuery
from ..systems.spawning import create_agents, place_agent
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld

logger = logging.getLogger(__name__)

_SPAWN_RNG_SALT = 0x5EED5A17C0FFEE01


def _derive_stream_seed(seed: int, salt: int) -> int:
    return (int(seed) ^ int(salt)) & 0xFFFFFFFFFFFFFFFF


class World:
    def __init__(self, config: SimulationConfig):
        self._config = config
        self._rng = DeterministicRng(config.seed)
        self._spawn_rng = DeterministicRng(_derive_stream_seed(config.seed, _SPAWN_RNG_SALT))
        grid_config = config.grid
        self._grid = OccupancyGrid(
            grid_config.width, grid_config.height, grid_config.cell_size, Vector2(grid_config.origin)
        )
        self._scene = SceneQuery(
            [Obstacle.from_config(obstacle) for obstacle in config.obstacles],
            cell_size=max(grid_config.cell_size, config.agent.vision_radius),
        )
        self._relations = FollowRelations()
        self._agents: List[Agent] = []
        self._by_id: Dict[int, Agent] = {}
        self._navigators: Dict[int, KinematicNavigator] = {}
        self._machine = BehaviourStateMachine(
            grid=self._grid,
            spatial=self._scene,
            relations=self._relations,
            rng=self._rng,
            respawner=self,
            lookup=self._by_id.get,
            evaluation_order=config.evaluation_order,
        )
        self._metrics: TickMetrics | None = None
        self._occupancy_countdown = 0.0
        self._occupied_cells = 0
        self._bootstrap_population()
        logger.info(
            "World ready: %dx%d grid, %d agents, %d obstacles",
            self._grid.width,
            self._grid.height,
            len(self._agents),
            len(self._scene.obstacles),
        )

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def grid(self) -> OccupancyGrid:
        return self._grid

    @property
    def relations(self) -> FollowRelations:
        return self._relations

    @property
    def machine(self) -> BehaviourStateMachine:
        return self._machine

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def agent(self, agent_id: int) -> Optional[Agent]:
        return self._by_id.get(agent_id)

    def navigator(self, agent_id: int) -> KinematicNavigator:
        return self._navigators[agent_id]

    def reset(self) -> None:
        self._agents.clear()
        self._by_id.clear()
        self._navigators.clear()
        self._relations.clear()
        self._rng.reset()
        self._spawn_rng.reset()
        self._machine.events.clear()
        self._metrics = None
        self._occupancy_countdown = 0.0
        self._occupied_cells = 0
        self._bootstrap_population()
        logger.info("World reset: %d agents", len(self._agents))

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        dt = self._config.time_step
        now = tick * dt

        self._scene.rebuild(self._agents)
        if self._occupancy_countdown <= 0.0:
            self._occupied_cells = self._grid.refresh(self._scene.occupied_cell_test)
            self._occupancy_countdown = self._config.occupancy_refresh_interval
        self._occupancy_countdown -= dt

        events = self._machine.events
        events.clear()
        for agent in self._agents:
            self._machine.tick(agent, self._navigators[agent.id], now)

        for agent in self._agents:
            self._navigators[agent.id].step(dt)

        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(
            tick,
            self._agents,
            events,
            active_follows=len(self._relations),
            occupied_cells=self._occupied_cells,
            duration_ms=duration_ms,
        )
        return self._metrics

    def respawn(self, agent: Agent) -> bool:
        spawn_points = self._config.spawn_points
        if not 0 <= agent.spawn_index < len(spawn_points):
            logger.debug("Agent %d has no spawn point %d; not respawned", agent.id, agent.spawn_index)
            return False
        follower_id = self._relations.followed_by(agent.id)
        if follower_id is not None:
            self._machine.end_following(self._by_id[follower_id], self._navigators[follower_id])
        self._relations.release(agent.id)
        place_agent(agent, spawn_points[agent.spawn_index], self._spawn_rng)
        self._navigators[agent.id].reset()
        logger.debug("Agent %d respawned at %s", agent.id, agent.position)
        return True

    def snapshot(self, tick: int) -> Snapshot:
        config = self._config
        agents_payload: List[Dict[str, Any]] = []
        for agent in self._agents:
            behaviour = agent.behaviour
            navigator = self._navigators[agent.id]
            payload: Dict[str, Any] = {
                "id": agent.id,
                "x": agent.position.x,
                "y": agent.position.y,
                "vx": agent.velocity.x,
                "vy": agent.velocity.y,
                "heading": agent.heading,
                "behaviour": behaviour.kind.value,
                "destination": [agent.destination.x, agent.destination.y],
                "sub_destination": [navigator.destination.x, navigator.destination.y],
                "following": self._relations.following(agent.id),
                "followed_by": self._relations.followed_by(agent.id),
            }
            area = self._grid.search_area(agent.position, agent.config.gap_search_area)
            if area is not None:
                payload["search_area"] = [list(area.p1), list(area.p2)]
            if isinstance(behaviour, GapSeekingBehaviour):
                payload["gap"] = [list(behaviour.gap.p1), list(behaviour.gap.p2)]
                payload["until"] = behaviour.start + behaviour.duration
            elif isinstance(behaviour, FollowingBehaviour):
                payload["until"] = behaviour.start + behaviour.duration
            elif isinstance(behaviour, StopAndGoBehaviour):
                payload["until"] = behaviour.wake_time
            agents_payload.append(payload)

        return Snapshot(
            tick=tick,
            metrics=self._metrics,
            agents=agents_payload,
            world=SnapshotWorld(
                width=self._grid.width,
                height=self._grid.height,
                cell_size=self._grid.cell_size,
                origin=(self._grid.origin.x, self._grid.origin.y),
                obstacles=[
                    {
                        "x": obstacle.center.x,
                        "y": obstacle.center.y,
                        "hx": obstacle.half_extents.x,
                        "hy": obstacle.half_extents.y,
                    }
                    for obstacle in self._scene.obstacles
                ],
            ),
            metadata=SnapshotMetadata(
                sim_dt=config.time_step,
                tick_rate=1.0 / config.time_step if config.time_step > 0 else 0.0,
                seed=config.seed,
                config_version=config.config_version,
                evaluation_order=list(self._machine.evaluation_order),
            ),
            occupancy=self._grid.rows(),
        )

    def _bootstrap_population(self) -> None:
        agents = create_agents(self._config.spawn_points, self._config.agent, self._spawn_rng)
        for agent in agents:
            self._agents.append(agent)
            self._by_id[agent.id] = agent
            self._navigators[agent.id] = KinematicNavigator(agent)
