"""
chirp.services.serializers — ORM → JSON-ready dicts
=====================================================

Called inside an open session so relationships can still load.  Keys are
camelCase to match what the browser client reads.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from chirp.database.models import Comment, Post, User


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_summary(u: User) -> dict:
    """The small author/follower card embedded in other payloads."""
    return {
        "id": u.id,
        "username": u.username,
        "fullName": u.full_name,
        "profilePicture": u.profile_picture,
    }


def public_profile(u: User, *, include_email: bool = False) -> dict:
    """Full profile.  Counts are derived from the edge lists, never stored."""
    followers = list(u.followers)
    following = list(u.following)
    data = {
        **user_summary(u),
        "bio": u.bio,
        "followers": [user_summary(f) for f in followers],
        "following": [user_summary(f) for f in following],
        "followersCount": len(followers),
        "followingCount": len(following),
        "createdAt": _iso(u.created_at),
    }
    if include_email:
        data["email"] = u.email
    return data


def search_result(u: User) -> dict:
    return {**user_summary(u), "bio": u.bio}


def comment_dict(c: Comment) -> dict:
    return {
        "id": c.id,
        "user": user_summary(c.user),
        "text": c.text,
        "createdAt": _iso(c.created_at),
    }


def post_dict(p: Post) -> dict:
    likes = [like.user_id for like in p.likes]
    return {
        "id": p.id,
        "author": user_summary(p.author),
        "content": p.content,
        "image": p.image,
        "likes": likes,
        "likesCount": len(likes),
        "comments": [comment_dict(c) for c in p.comments],
        "commentsCount": len(p.comments),
        "createdAt": _iso(p.created_at),
    }


def with_post_joins(stmt: Select) -> Select:
    """Eager-load everything :func:`post_dict` touches (author, likes, comments)."""
    return stmt.options(
        selectinload(Post.author),
        selectinload(Post.likes),
        selectinload(Post.comments).selectinload(Comment.user),
    )


def with_profile_joins(stmt: Select) -> Select:
    return stmt.options(selectinload(User.followers), selectinload(User.following))
