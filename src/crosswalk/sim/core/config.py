from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

import yaml

TRANSITIONS = ("stop_and_go", "gap_seeking", "following")


@dataclass
class GridConfig:
    width: int = 40
    height: int = 40
    cell_size: float = 0.5
    origin: tuple[float, float] = (0.0, 0.0)


@dataclass
class AgentConfig:
    seeds: int = 3
    gap_search_area: int = 5
    vision_radius: float = 2.5
    vision_angle: float = 120.0
    deviation_angle: float = 166.0
    destination_threshold_angle: float = 78.0
    stopping_distance: float = 0.5
    stop_time_threshold: float = 3.0
    stop_and_go_chance: float = 1.0 / 999.0
    # Gap-seeker speed logistic
    alpha: float = 0.5
    beta: float = 0.75
    # Seeking probability scale
    lambda_: float = 2.3
    # Followee distance decay
    tau: float = 0.65
    following_refresh_distance: float = 0.1
    is_gap_seeker: bool = True
    is_follower: bool = True
    respawn: bool = True
    radius: float = 0.5
    scale: tuple[float, float] = (1.0, 1.0)
    max_speed: float = 1.4


@dataclass
class ObstacleConfig:
    position: tuple[float, float] = (0.0, 0.0)
    size: tuple[float, float] = (1.0, 1.0)


@dataclass
class SpawnPointConfig:
    position: tuple[float, float] = (0.0, 0.0)
    destination: tuple[float, float] = (10.0, 0.0)
    count: int = 1
    jitter: float = 0.0


def _default_spawn_points() -> List[SpawnPointConfig]:
    # Two opposing streams crossing the default 20m x 20m plaza.
    return [
        SpawnPointConfig(position=(1.0, 10.0), destination=(19.0, 10.0), count=8, jitter=1.5),
        SpawnPointConfig(position=(19.0, 10.5), destination=(1.0, 10.5), count=8, jitter=1.5),
    ]


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 30.0
    seed: int = 42
    occupancy_refresh_interval: float = 0.2
    config_version: str = "v1"
    evaluation_order: Tuple[str, ...] = TRANSITIONS
    grid: GridConfig = field(default_factory=GridConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    obstacles: List[ObstacleConfig] = field(default_factory=list)
    spawn_points: List[SpawnPointConfig] = field(default_factory=_default_spawn_points)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def _pair(value: tuple[float, float] | list[float] | None, default: tuple[float, float]) -> tuple[float, float]:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return (float(value[0]), float(value[1]))
    return default


def load_config(raw: dict) -> SimulationConfig:
    grid_raw = dict(raw.get("grid", {}))
    grid = GridConfig(
        origin=_pair(grid_raw.pop("origin", None), GridConfig().origin),
        **grid_raw,
    )

    agent_raw = dict(raw.get("agent", {}))
    if "lambda" in agent_raw:
        agent_raw["lambda_"] = agent_raw.pop("lambda")
    agent = AgentConfig(
        scale=_pair(agent_raw.pop("scale", None), AgentConfig().scale),
        **agent_raw,
    )

    obstacles = [
        ObstacleConfig(
            position=_pair(item.get("position"), (0.0, 0.0)),
            size=_pair(item.get("size"), (1.0, 1.0)),
        )
        for item in raw.get("obstacles", [])
    ]
    spawn_points = [
        SpawnPointConfig(
            position=_pair(item.get("position"), (0.0, 0.0)),
            destination=_pair(item.get("destination"), (10.0, 0.0)),
            count=int(item.get("count", 1)),
            jitter=float(item.get("jitter", 0.0)),
        )
        for item in raw.get("spawn_points", [])
    ]

    sim_values = {
        k: v
        for k, v in raw.items()
        if k not in {"grid", "agent", "obstacles", "spawn_points", "evaluation_order"}
    }
    if "spawn_points" in raw:
        sim_values["spawn_points"] = spawn_points
    return SimulationConfig(
        grid=grid,
        agent=agent,
        obstacles=obstacles,
        evaluation_order=tuple(raw.get("evaluation_order", TRANSITIONS)),
        **sim_values,
    )
