from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Callable, Dict, Iterable, Optional

from .agent import (
    DEFAULT,
    BehaviourKind,
    FollowingBehaviour,
    GapSeekingBehaviour,
    StopAndGoBehaviour,
)
from .config import TRANSITIONS
from ..systems.following import detect_followees, engage_following, select_followee
from ..systems.gaps import detect_gaps, select_gap_for
from ..systems.seeking import plan_seeking, seeking_probability

if TYPE_CHECKING:
    from .agent import Agent
    from .interfaces import Navigator, Respawner, SpatialQuery
    from .occupancy import OccupancyGrid
    from .relations import FollowRelations
    from .rng import DeterministicRng

logger = logging.getLogger(__name__)

AgentLookup = Callable[[int], Optional["Agent"]]


class BehaviourStateMachine:
    """Per-tick behaviour arbitration shared by every agent of a world.

    The destination check runs first; the remaining transitions run in
    `evaluation_order`, and the first one that changes an agent's behaviour
    wins because the later ones only start from Default.
    """

    def __init__(
        self,
        grid: OccupancyGrid,
        spatial: SpatialQuery,
        relations: FollowRelations,
        rng: DeterministicRng,
        respawner: Respawner,
        lookup: AgentLookup,
        evaluation_order: Iterable[str] = TRANSITIONS,
    ) -> None:
        self._grid = grid
        self._spatial = spatial
        self._relations = relations
        self._rng = rng
        self._respawner = respawner
        self._lookup = lookup
        self._steps: Dict[str, Callable[["Agent", "Navigator", float], None]] = {
            "stop_and_go": self._stop_and_go,
            "gap_seeking": self._gap_seeking,
            "following": self._following,
        }
        order = tuple(evaluation_order)
        unknown = [name for name in order if name not in self._steps]
        if unknown:
            raise ValueError(f"Unknown behaviour transitions: {unknown}")
        self._order = order
        self.events: Counter[str] = Counter()

    @property
    def evaluation_order(self) -> tuple[str, ...]:
        return self._order

    def tick(self, agent: Agent, navigator: Navigator, now: float) -> None:
        self._check_destination_reached(agent, navigator)
        for name in self._order:
            self._steps[name](agent, navigator, now)

    def _check_destination_reached(self, agent: Agent, navigator: Navigator) -> None:
        if (
            agent.kind is BehaviourKind.DEFAULT
            and agent.config.respawn
            and navigator.remaining_distance <= agent.config.stopping_distance
        ):
            if self._respawner.respawn(agent):
                self.events["respawns"] += 1

    def _stop_and_go(self, agent: Agent, navigator: Navigator, now: float) -> None:
        behaviour = agent.behaviour
        if behaviour.kind is BehaviourKind.DEFAULT and self._rng.next_float() < agent.config.stop_and_go_chance:
            agent.behaviour = StopAndGoBehaviour(wake_time=now + agent.config.stop_time_threshold)
            navigator.pause()
            self.events["stops"] += 1
            logger.debug("Agent %d: stop until %.3f", agent.id, agent.behaviour.wake_time)
        elif isinstance(behaviour, StopAndGoBehaviour) and behaviour.wake_time < now:
            navigator.resume()
            agent.behaviour = DEFAULT
            logger.debug("Agent %d: resume after stop", agent.id)

    def _gap_seeking(self, agent: Agent, navigator: Navigator, now: float) -> None:
        config = agent.config
        behaviour = agent.behaviour
        if (
            config.is_gap_seeker
            and behaviour.kind is BehaviourKind.DEFAULT
            and self._rng.next_float()
            < seeking_probability(agent.position, agent.starting_position, agent.destination, config.lambda_)
        ):
            self._start_seeking(agent, navigator, now)
        elif isinstance(behaviour, GapSeekingBehaviour) and (
            behaviour.expired(now) or navigator.remaining_distance <= config.stopping_distance
        ):
            navigator.set_sub_destination(agent.destination)
            agent.behaviour = DEFAULT
            self.events["seeks_ended"] += 1
            logger.debug("Agent %d: end gap seeking", agent.id)

    def _start_seeking(self, agent: Agent, navigator: Navigator, now: float) -> None:
        config = agent.config
        self.events["gap_searches"] += 1
        gaps = detect_gaps(self._grid, agent.position, config.gap_search_area, config.seeds, self._rng)
        self.events["gaps_detected"] += len(gaps)
        candidate = select_gap_for(self._grid, agent, gaps)
        if candidate is None:
            return
        plan = plan_seeking(self._grid, agent, candidate, self._spatial)
        if plan is None:
            return
        agent.behaviour = GapSeekingBehaviour(
            start=now,
            duration=plan.duration,
            gap=candidate.gap,
            sub_destination=plan.sub_destination,
        )
        navigator.set_sub_destination(plan.sub_destination)
        self.events["seeks_started"] += 1
        logger.debug("Agent %d: seeking gap %s for %.3fs", agent.id, candidate.gap, plan.duration)

    def _following(self, agent: Agent, navigator: Navigator, now: float) -> None:
        behaviour = agent.behaviour
        if agent.config.is_follower and behaviour.kind is BehaviourKind.DEFAULT:
            candidates = detect_followees(agent, self._spatial)
            target = select_followee(agent, candidates, self._relations, self._rng)
            if target is None:
                return
            following = engage_following(agent, target, self._relations, now)
            if following is None:
                return
            agent.behaviour = following
            navigator.set_sub_destination(target.position)
            self.events["followings_started"] += 1
            logger.debug("Agent %d: following %d for %.3fs", agent.id, target.id, following.duration)
        elif isinstance(behaviour, FollowingBehaviour):
            target = self._lookup(behaviour.target_id)
            if target is None:
                logger.warning("Agent %d: follow target %d is gone", agent.id, behaviour.target_id)
                self.end_following(agent, navigator)
            elif behaviour.expired(now):
                self.end_following(agent, navigator)
            elif navigator.destination.distance_to(target.position) > agent.config.following_refresh_distance:
                navigator.set_sub_destination(target.position)

    def end_following(self, agent: Agent, navigator: Navigator) -> None:
        self._relations.release(agent.id)
        navigator.set_sub_destination(agent.destination)
        agent.behaviour = DEFAULT
        self.events["followings_ended"] += 1
        logger.debug("Agent %d: end following", agent.id)
