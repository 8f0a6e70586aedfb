"""
chirp.services.feed_service — Feeds & Timelines
=================================================

The feed of user *U* is every post authored by *U* or by someone *U*
follows, newest first, paged by offset/limit.  Pages are recomputed on
every request, so posts created between two page requests shift later
pages (ordinary offset-pagination drift).
"""

from __future__ import annotations

import math

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session

from chirp.database.models import Post, User
from chirp.services.errors import UserNotFound, ValidationFailed
from chirp.services.graph_service import following_ids
from chirp.services.serializers import post_dict, with_post_joins

_NEWEST_FIRST = (Post.created_at.desc(), Post.id.desc())


def get_feed(engine: Engine, user_id: int, page: int = 1, page_size: int = 20) -> dict:
    """Return ``{"posts": [...], "pagination": {page, limit, total, pages}}``."""
    if page < 1:
        raise ValidationFailed("page", "Page must be a positive integer")
    if page_size < 1:
        raise ValidationFailed("limit", "Limit must be a positive integer")

    with Session(engine) as session:
        author_ids = sorted({user_id, *following_ids(session, user_id)})
        in_feed = Post.author_id.in_(author_ids)

        total = session.scalar(select(func.count()).select_from(Post).where(in_feed)) or 0
        rows = session.scalars(
            with_post_joins(
                select(Post)
                .where(in_feed)
                .order_by(*_NEWEST_FIRST)
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
        ).all()

        return {
            "posts": [post_dict(p) for p in rows],
            "pagination": {
                "page": page,
                "limit": page_size,
                "total": total,
                "pages": math.ceil(total / page_size),
            },
        }


def get_user_posts(engine: Engine, username: str) -> list[dict]:
    """All posts by *username*, newest first."""
    with Session(engine) as session:
        author_id = session.scalar(select(User.id).where(User.username == username))
        if author_id is None:
            raise UserNotFound()
        rows = session.scalars(
            with_post_joins(
                select(Post).where(Post.author_id == author_id).order_by(*_NEWEST_FIRST)
            )
        ).all()
        return [post_dict(p) for p in rows]
