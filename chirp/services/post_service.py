"""
chirp.services.post_service — Posts, Likes & Comments
=======================================================

A post is owned by its author and carries a like-set (``post_likes``) and a
comment sequence (``comments``), both of which die with it.

* Likes toggle with a single-row DELETE-or-INSERT, never by rewriting the
  post, so concurrent likes from different users never clobber each other.
* Comments are read newest-first; that order is part of the API contract.
* Deleting a post releases its image after the commit.  A failure to
  remove the file is logged and ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from chirp.constants import COMMENT_MAX_LENGTH, POST_MAX_LENGTH
from chirp.database.models import Comment, Post, PostLike
from chirp.services.errors import InvalidContent, NotAuthorized, PostNotFound
from chirp.services.serializers import post_dict, with_post_joins
from chirp.services.upload_service import release_upload

logger = logging.getLogger(__name__)


def _clean_text(field: str, text: str | None, limit: int, label: str) -> str:
    text = (text or "").strip()
    if not 1 <= len(text) <= limit:
        raise InvalidContent(field, f"{label} must be between 1 and {limit} characters")
    return text


def _load_post(session: Session, post_id: int) -> Post | None:
    return session.scalar(with_post_joins(select(Post).where(Post.id == post_id)))


def _post_exists(session: Session, post_id: int) -> bool:
    return session.scalar(select(Post.id).where(Post.id == post_id)) is not None


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------
def create_post(engine: Engine, author_id: int, content: str, image: str | None = None) -> dict:
    """Store a new post and return it with its author joined in.

    Raises :class:`InvalidContent` if the trimmed content is empty or longer
    than ``POST_MAX_LENGTH``.
    """
    content = _clean_text("content", content, POST_MAX_LENGTH, "Post content")
    with Session(engine) as session:
        post = Post(author_id=author_id, content=content, image=image)
        session.add(post)
        session.commit()
        logger.info("User %s created post %s", author_id, post.id)
        return post_dict(_load_post(session, post.id))


def get_post(engine: Engine, post_id: int) -> dict:
    with Session(engine) as session:
        post = _load_post(session, post_id)
        if post is None:
            raise PostNotFound()
        return post_dict(post)


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------
def toggle_like(engine: Engine, post_id: int, user_id: int) -> dict:
    """Flip *user_id*'s membership in the post's like-set.

    Returns ``{"post": <post>, "liked": bool}`` with the state after the
    call.  Calling it twice restores the original like-set.
    """
    with Session(engine) as session:
        if not _post_exists(session, post_id):
            raise PostNotFound()

        removed = session.execute(
            delete(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
        ).rowcount
        liked = not removed
        if liked:
            session.add(PostLike(post_id=post_id, user_id=user_id))
        try:
            session.commit()
        except IntegrityError:
            # A concurrent request already inserted this like.
            session.rollback()
            liked = True

        post = _load_post(session, post_id)
        if post is None:
            # Deleted between the existence check and the write.
            raise PostNotFound()
        return {"post": post_dict(post), "liked": liked}


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
def add_comment(engine: Engine, post_id: int, user_id: int, text: str) -> dict:
    """Add a comment; it becomes the first entry of ``post["comments"]``."""
    text = _clean_text("text", text, COMMENT_MAX_LENGTH, "Comment")
    with Session(engine) as session:
        if not _post_exists(session, post_id):
            raise PostNotFound()
        session.add(Comment(post_id=post_id, user_id=user_id, text=text))
        session.commit()
        return post_dict(_load_post(session, post_id))


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------
def delete_post(
    engine: Engine,
    post_id: int,
    requester_id: int,
    upload_dir: Path | None = None,
) -> None:
    """Delete a post (with its likes and comments) if *requester_id* wrote it.

    Raises
    ------
    PostNotFound
        No such post.
    NotAuthorized
        The requester is not the author.
    """
    with Session(engine) as session:
        post = session.get(Post, post_id)
        if post is None:
            raise PostNotFound()
        if post.author_id != requester_id:
            raise NotAuthorized("Not authorized to delete this post")

        image = post.image
        session.delete(post)
        session.commit()
        logger.info("User %s deleted post %s", requester_id, post_id)

    if image and upload_dir is not None:
        release_upload(upload_dir, image)
