from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, List, Optional, Sequence

from pygame.math import Vector2

from ..core.agent import BehaviourKind, FollowingBehaviour, GapSeekingBehaviour
from ..utils.math2d import _unsigned_angle

if TYPE_CHECKING:
    from ..core.agent import Agent
    from ..core.interfaces import SpatialQuery
    from ..core.relations import FollowRelations
    from ..core.rng import DeterministicRng

logger = logging.getLogger(__name__)

_FOLLOWABLE = (BehaviourKind.GAP_SEEKING, BehaviourKind.FOLLOWING)
# Shrinks the detection box so it stays inside the vision radius.
_DETECTION_MARGIN = 0.5


def detect_followees(agent: Agent, spatial: SpatialQuery) -> List[Agent]:
    """Agents ahead of `agent` that are currently seeking a gap or following someone."""
    vision_radius = agent.config.vision_radius
    center = agent.position + agent.forward * (vision_radius / 2)
    half = max(0.0, (vision_radius - _DETECTION_MARGIN) / 2)
    found = spatial.query_agents_in_volume(center, Vector2(half, half))
    candidates = [other for other in found if other.id != agent.id and other.kind in _FOLLOWABLE]
    logger.debug("Agent %d: %d followee candidates detected", agent.id, len(candidates))
    return candidates


def select_followee(
    agent: Agent,
    candidates: Sequence[Agent],
    relations: FollowRelations,
    rng: DeterministicRng,
) -> Optional[Agent]:
    max_deviation = agent.config.deviation_angle / 2
    forward = agent.forward
    eligible = [
        other
        for other in candidates
        if other.id != agent.id
        and _unsigned_angle(forward, other.forward) <= max_deviation
        and not relations.is_followed(other.id)
    ]
    if not eligible:
        return None

    tau = agent.config.tau
    weights = [math.exp(-tau * agent.position.distance_to(other.position)) for other in eligible]
    total = sum(weights)
    if total <= 0.0:
        return None

    draw = rng.next_float()
    accumulated = 0.0
    for other, weight in zip(eligible, weights):
        accumulated += weight / total
        if draw < accumulated:
            return other
    return None


def following_duration(target: Agent, now: float) -> float:
    """How much longer `target` stays committed to its current behaviour."""
    behaviour = target.behaviour
    if isinstance(behaviour, (GapSeekingBehaviour, FollowingBehaviour)):
        return behaviour.remaining(now)
    return 0.0


def engage_following(
    agent: Agent, target: Agent, relations: FollowRelations, now: float
) -> Optional[FollowingBehaviour]:
    duration = following_duration(target, now)
    if duration <= 0.0:
        return None
    if not relations.claim(agent.id, target.id):
        logger.debug("Agent %d: target %d already claimed", agent.id, target.id)
        return None
    return FollowingBehaviour(start=now, duration=duration, target_id=target.id)
