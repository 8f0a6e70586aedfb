"""
tests/test_graph_service.py — Follow Graph Tests
==================================================
Covers follow/unfollow toggling, self-follow and missing-target errors,
and that both sides of an edge always agree.
"""

from __future__ import annotations

import pytest
from conftest import make_user
from sqlalchemy import select
from sqlalchemy.orm import Session

from chirp.database.models import Follow
from chirp.services import account_service, graph_service
from chirp.services.errors import SelfFollow, UserNotFound


@pytest.fixture
def pair(db_engine):
    alice = make_user(db_engine, "alice")
    bob = make_user(db_engine, "bob")
    return db_engine, alice, bob


def _edges(engine) -> set[tuple[int, int]]:
    with Session(engine) as session:
        return {(f.follower_id, f.followee_id) for f in session.scalars(select(Follow))}


class TestToggleFollow:
    def test_first_call_follows(self, pair):
        engine, alice, bob = pair
        result = graph_service.toggle_follow(engine, alice["id"], "bob")
        assert result["following"] is True
        assert result["user"]["username"] == "bob"
        assert result["user"]["followersCount"] == 1
        assert graph_service.is_following(engine, alice["id"], bob["id"])

    def test_both_sides_see_the_edge(self, pair):
        engine, alice, bob = pair
        graph_service.toggle_follow(engine, alice["id"], "bob")

        a = account_service.get_profile(engine, "alice")
        b = account_service.get_profile(engine, "bob")
        assert [u["id"] for u in a["following"]] == [bob["id"]]
        assert [u["id"] for u in b["followers"]] == [alice["id"]]
        assert a["followersCount"] == 0
        assert b["followingCount"] == 0

    def test_second_call_restores_previous_state(self, pair):
        engine, alice, bob = pair
        before = _edges(engine)
        graph_service.toggle_follow(engine, alice["id"], "bob")
        result = graph_service.toggle_follow(engine, alice["id"], "bob")
        assert result["following"] is False
        assert result["user"]["followersCount"] == 0
        assert _edges(engine) == before
        assert not graph_service.is_following(engine, alice["id"], bob["id"])

    def test_follow_is_directed(self, pair):
        engine, alice, bob = pair
        graph_service.toggle_follow(engine, alice["id"], "bob")
        assert not graph_service.is_following(engine, bob["id"], alice["id"])

    def test_mutual_follow(self, pair):
        engine, alice, bob = pair
        graph_service.toggle_follow(engine, alice["id"], "bob")
        graph_service.toggle_follow(engine, bob["id"], "alice")
        assert _edges(engine) == {(alice["id"], bob["id"]), (bob["id"], alice["id"])}

    def test_self_follow_rejected(self, pair):
        engine, alice, _ = pair
        with pytest.raises(SelfFollow, match="cannot follow yourself"):
            graph_service.toggle_follow(engine, alice["id"], "alice")
        assert _edges(engine) == set()

    def test_unknown_target(self, pair):
        engine, alice, _ = pair
        with pytest.raises(UserNotFound):
            graph_service.toggle_follow(engine, alice["id"], "nobody")


class TestEdgeLists:
    def test_followers_and_following(self, db_engine):
        alice = make_user(db_engine, "alice")
        bob = make_user(db_engine, "bob")
        carol = make_user(db_engine, "carol")
        graph_service.toggle_follow(db_engine, bob["id"], "alice")
        graph_service.toggle_follow(db_engine, carol["id"], "alice")
        graph_service.toggle_follow(db_engine, alice["id"], "carol")

        followers = graph_service.list_followers(db_engine, "alice")
        following = graph_service.list_following(db_engine, "alice")
        assert [u["username"] for u in followers] == ["bob", "carol"]
        assert [u["username"] for u in following] == ["carol"]
        assert "bio" in followers[0]

    def test_unknown_user(self, db_engine):
        with pytest.raises(UserNotFound):
            graph_service.list_followers(db_engine, "nobody")
        with pytest.raises(UserNotFound):
            graph_service.list_following(db_engine, "nobody")
