from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics | None
    agents: List[Dict[str, Any]]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"
    occupancy: List[List[int]]


@dataclass(slots=True)
class SnapshotWorld:
    width: int
    height: int
    cell_size: float
    origin: tuple[float, float]
    obstacles: List[Dict[str, float]]


@dataclass(slots=True)
class SnapshotMetadata:
    sim_dt: float
    tick_rate: float
    seed: int
    config_version: str
    evaluation_order: List[str]
