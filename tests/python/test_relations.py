from __future__ import annotations

from crosswalk.sim.core.relations import FollowRelations


def test_claim_is_exclusive_per_followee():
    relations = FollowRelations()
    assert relations.claim(1, 2)
    assert not relations.claim(3, 2)
    assert relations.followed_by(2) == 1
    assert relations.following(1) == 2
    assert relations.following(3) is None


def test_follower_holds_one_claim_and_cannot_follow_itself():
    relations = FollowRelations()
    assert not relations.claim(4, 4)
    assert relations.claim(4, 5)
    assert not relations.claim(4, 6)
    assert list(relations) == [(4, 5)]


def test_release_frees_the_followee():
    relations = FollowRelations()
    relations.claim(1, 2)
    assert relations.release(1) == 2
    assert not relations.is_followed(2)
    assert relations.release(1) is None
    assert relations.claim(3, 2)
    assert len(relations) == 1
