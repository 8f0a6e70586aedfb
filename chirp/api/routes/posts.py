"""
chirp.api.routes.posts — Posts, feed, likes & comments
========================================================
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form, Query, UploadFile, status
from pydantic import BaseModel
from sqlalchemy import Engine

from chirp.api.deps import get_config, get_current_user, get_engine
from chirp.config import ChirpConfig
from chirp.constants import POST_IMAGE_SUBDIR
from chirp.database.engine import run_db
from chirp.services import feed_service, post_service
from chirp.services.upload_service import release_upload, save_upload

router = APIRouter(prefix="/posts", tags=["posts"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class CommentBody(BaseModel):
    text: str


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    content: Annotated[str | None, Form()] = None,
    image: UploadFile | None = None,
    current: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    cfg: ChirpConfig = Depends(get_config),
):
    """Create a post from a multipart form (``content`` + optional ``image``)."""
    image_url = None
    if image is not None and image.filename:
        image_url = await save_upload(
            cfg.upload_dir,
            POST_IMAGE_SUBDIR,
            field="image",
            filename=image.filename,
            content=await image.read(cfg.post_image_max_bytes + 1),
            content_type=image.content_type,
            max_bytes=cfg.post_image_max_bytes,
        )

    try:
        post = await run_db(post_service.create_post, engine, current["id"], content, image_url)
    except Exception:
        if image_url:
            release_upload(cfg.upload_dir, image_url)
        raise
    return {"success": True, "post": post}


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("/feed")
def get_feed(
    page: int = Query(1),
    limit: int | None = Query(None),
    current: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    cfg: ChirpConfig = Depends(get_config),
):
    """The caller's posts plus those of everyone they follow, newest first."""
    page_size = cfg.feed_page_size if limit is None else min(limit, cfg.feed_max_page_size)
    feed = feed_service.get_feed(engine, current["id"], page=page, page_size=page_size)
    return {"success": True, **feed}


@router.get("/user/{username}")
def get_user_posts(username: str, engine: Engine = Depends(get_engine)):
    return {"success": True, "posts": feed_service.get_user_posts(engine, username)}


@router.get("/{post_id}")
def get_post(post_id: int, engine: Engine = Depends(get_engine)):
    return {"success": True, "post": post_service.get_post(engine, post_id)}


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
@router.put("/{post_id}/like")
def toggle_like(
    post_id: int,
    current: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    """Like the post, or unlike it if already liked."""
    result = post_service.toggle_like(engine, post_id, current["id"])
    return {"success": True, **result}


@router.post("/{post_id}/comment")
def add_comment(
    post_id: int,
    body: CommentBody,
    current: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    post = post_service.add_comment(engine, post_id, current["id"], body.text)
    return {"success": True, "post": post}


@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    current: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    cfg: ChirpConfig = Depends(get_config),
):
    """Delete one of the caller's own posts."""
    post_service.delete_post(engine, post_id, current["id"], upload_dir=cfg.upload_dir)
    return {"success": True, "message": "Post deleted successfully"}
