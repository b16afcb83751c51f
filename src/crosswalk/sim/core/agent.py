from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from pygame.math import Vector2

from ..utils.math2d import _forward_from_heading
from .config import AgentConfig
from .gap import Gap


class BehaviourKind(str, Enum):
    DEFAULT = "Default"
    GAP_SEEKING = "GapSeeking"
    FOLLOWING = "Following"
    STOP_AND_GO = "StopAndGo"
    OVERTAKING = "Overtaking"


@dataclass(frozen=True, slots=True)
class DefaultBehaviour:
    kind: ClassVar[BehaviourKind] = BehaviourKind.DEFAULT


@dataclass(frozen=True, slots=True)
class GapSeekingBehaviour:
    kind: ClassVar[BehaviourKind] = BehaviourKind.GAP_SEEKING
    start: float
    duration: float
    gap: Gap
    sub_destination: Vector2

    def remaining(self, now: float) -> float:
        return self.duration - (now - self.start)

    def expired(self, now: float) -> bool:
        return self.start + self.duration < now


@dataclass(frozen=True, slots=True)
class FollowingBehaviour:
    kind: ClassVar[BehaviourKind] = BehaviourKind.FOLLOWING
    start: float
    duration: float
    target_id: int

    def remaining(self, now: float) -> float:
        return self.duration - (now - self.start)

    def expired(self, now: float) -> bool:
        return self.start + self.duration < now


@dataclass(frozen=True, slots=True)
class StopAndGoBehaviour:
    kind: ClassVar[BehaviourKind] = BehaviourKind.STOP_AND_GO
    wake_time: float


@dataclass(frozen=True, slots=True)
class OvertakingBehaviour:
    kind: ClassVar[BehaviourKind] = BehaviourKind.OVERTAKING


Behaviour = Union[
    DefaultBehaviour,
    GapSeekingBehaviour,
    FollowingBehaviour,
    StopAndGoBehaviour,
    OvertakingBehaviour,
]

DEFAULT = DefaultBehaviour()


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2
    destination: Vector2
    starting_position: Vector2
    config: AgentConfig = field(default_factory=AgentConfig)
    velocity: Vector2 = field(default_factory=Vector2)
    heading: float = 0.0
    behaviour: Behaviour = DEFAULT
    spawn_index: int = -1

    @property
    def kind(self) -> BehaviourKind:
        return self.behaviour.kind

    @property
    def forward(self) -> Vector2:
        return _forward_from_heading(self.heading)

    @property
    def footprint(self) -> float:
        """Body radius scaled by the largest horizontal scale factor."""
        return self.config.radius * max(self.config.scale[0], self.config.scale[1])
