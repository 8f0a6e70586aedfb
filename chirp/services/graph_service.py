"""
chirp.services.graph_service — Follow Edges
=============================================

A follow edge is one row in ``follows``.  Both ``User.following`` (actor
side) and ``User.followers`` (target side) read that same row, so an edge
is either fully present or fully absent; there is no window in which only
one side has been written.

``toggle_follow`` flips the edge with a single-row DELETE, or an INSERT when
nothing was deleted.  Two concurrent toggles race at the database: the
primary key stops a duplicate edge and the later statement wins.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from chirp.database.models import Follow, User
from chirp.services.errors import SelfFollow, UserNotFound
from chirp.services.serializers import public_profile, search_result, with_profile_joins

logger = logging.getLogger(__name__)


def toggle_follow(engine: Engine, actor_id: int, target_username: str) -> dict:
    """Follow *target_username*, or unfollow if already following.

    Returns ``{"user": <target profile>, "following": bool}`` where
    ``following`` is the state after the call.

    Raises
    ------
    UserNotFound
        No user has that username.
    SelfFollow
        The target is the actor.
    """
    with Session(engine) as session:
        target_id = session.scalar(select(User.id).where(User.username == target_username))
        if target_id is None:
            raise UserNotFound()
        if target_id == actor_id:
            raise SelfFollow()

        removed = session.execute(
            delete(Follow).where(
                Follow.follower_id == actor_id,
                Follow.followee_id == target_id,
            )
        ).rowcount
        following = not removed
        if following:
            session.add(Follow(follower_id=actor_id, followee_id=target_id))
        try:
            session.commit()
        except IntegrityError:
            # A concurrent request created the same edge first.
            session.rollback()
            following = True

        logger.info(
            "User %s %s user %s",
            actor_id, "followed" if following else "unfollowed", target_id,
        )
        target = session.scalar(with_profile_joins(select(User).where(User.id == target_id)))
        return {"user": public_profile(target), "following": following}


def is_following(engine: Engine, actor_id: int, target_id: int) -> bool:
    with Session(engine) as session:
        return session.get(Follow, (actor_id, target_id)) is not None


def following_ids(session: Session, user_id: int) -> list[int]:
    """Ids of everyone *user_id* follows."""
    return list(
        session.scalars(select(Follow.followee_id).where(Follow.follower_id == user_id))
    )


def _edge_list(engine: Engine, username: str, attr) -> list[dict]:
    with Session(engine) as session:
        user = session.scalar(
            select(User).where(User.username == username).options(selectinload(attr))
        )
        if user is None:
            raise UserNotFound()
        return [search_result(u) for u in getattr(user, attr.key)]


def list_followers(engine: Engine, username: str) -> list[dict]:
    return _edge_list(engine, username, User.followers)


def list_following(engine: Engine, username: str) -> list[dict]:
    return _edge_list(engine, username, User.following)
