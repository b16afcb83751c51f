from __future__ import annotations

from typing import Iterable, Mapping

from ..core.agent import Agent, BehaviourKind
from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    agents: Iterable[Agent],
    events: Mapping[str, int],
    active_follows: int,
    occupied_cells: int,
    duration_ms: float,
) -> TickMetrics:
    counts = {kind: 0 for kind in BehaviourKind}
    total = 0
    for agent in agents:
        counts[agent.kind] += 1
        total += 1
    return TickMetrics(
        tick=tick,
        agents=total,
        default=counts[BehaviourKind.DEFAULT],
        gap_seeking=counts[BehaviourKind.GAP_SEEKING],
        following=counts[BehaviourKind.FOLLOWING],
        stop_and_go=counts[BehaviourKind.STOP_AND_GO],
        gap_searches=events.get("gap_searches", 0),
        gaps_detected=events.get("gaps_detected", 0),
        seeks_started=events.get("seeks_started", 0),
        seeks_ended=events.get("seeks_ended", 0),
        followings_started=events.get("followings_started", 0),
        followings_ended=events.get("followings_ended", 0),
        stops=events.get("stops", 0),
        respawns=events.get("respawns", 0),
        active_follows=active_follows,
        occupied_cells=occupied_cells,
        tick_duration_ms=duration_ms,
    )
