from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple


class FollowRelations:
    """Follower/followee table; a followee has at most one follower.

    Agents never hold references to each other. The table is the single place
    where the "followed by" back-reference lives.
    """

    def __init__(self) -> None:
        self._followee_of: Dict[int, int] = {}
        self._follower_of: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._followee_of)

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        return iter(self._followee_of.items())

    def followed_by(self, followee_id: int) -> Optional[int]:
        return self._follower_of.get(followee_id)

    def following(self, follower_id: int) -> Optional[int]:
        return self._followee_of.get(follower_id)

    def is_followed(self, followee_id: int) -> bool:
        return followee_id in self._follower_of

    def claim(self, follower_id: int, followee_id: int) -> bool:
        """Atomically record `follower_id -> followee_id` if the followee is unclaimed."""
        if follower_id == followee_id:
            return False
        if followee_id in self._follower_of or follower_id in self._followee_of:
            return False
        self._followee_of[follower_id] = followee_id
        self._follower_of[followee_id] = follower_id
        return True

    def release(self, follower_id: int) -> Optional[int]:
        """Drop the follower's claim; returns the followee it was attached to."""
        followee_id = self._followee_of.pop(follower_id, None)
        if followee_id is not None and self._follower_of.get(followee_id) == follower_id:
            del self._follower_of[followee_id]
        return followee_id

    def clear(self) -> None:
        self._followee_of.clear()
        self._follower_of.clear()
