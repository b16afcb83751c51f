from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    agents: int
    default: int
    gap_seeking: int
    following: int
    stop_and_go: int
    gap_searches: int
    gaps_detected: int
    seeks_started: int
    seeks_ended: int
    followings_started: int
    followings_ended: int
    stops: int
    respawns: int
    active_follows: int
    occupied_cells: int
    tick_duration_ms: float = 0.0
