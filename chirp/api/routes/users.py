"""
chirp.api.routes.users — Profiles, search & follow graph
==========================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request, UploadFile
from sqlalchemy import Engine

from chirp.api.deps import get_config, get_current_user, get_engine
from chirp.config import ChirpConfig
from chirp.constants import PROFILE_IMAGE_SUBDIR
from chirp.database.engine import run_db
from chirp.services import account_service, graph_service
from chirp.services.errors import ValidationFailed
from chirp.services.upload_service import release_upload, save_upload

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/search")
def search_users(q: str | None = Query(None), engine: Engine = Depends(get_engine)):
    """Up to ten users whose username or full name contains *q*."""
    return {"success": True, "users": account_service.search_users(engine, q)}


@router.put("/profile")
async def update_profile(
    request: Request,
    profilePicture: UploadFile | None = None,  # noqa: N803
    current: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    cfg: ChirpConfig = Depends(get_config),
):
    """Edit display name / bio and optionally replace the profile picture.

    Text fields are read off the raw form: a submitted empty ``bio`` clears
    it and an empty ``fullName`` is rejected, while an omitted field is left
    unchanged.
    """
    form = await request.form()
    full_name = _text_field(form, "fullName")
    bio = _text_field(form, "bio")

    picture_url = None
    if profilePicture is not None and profilePicture.filename:
        picture_url = await save_upload(
            cfg.upload_dir,
            PROFILE_IMAGE_SUBDIR,
            field="profilePicture",
            filename=profilePicture.filename,
            content=await profilePicture.read(cfg.profile_image_max_bytes + 1),
            content_type=profilePicture.content_type,
            max_bytes=cfg.profile_image_max_bytes,
        )

    try:
        user = await run_db(
            account_service.update_profile,
            engine,
            current["id"],
            full_name=full_name,
            bio=bio,
            picture_ref=picture_url,
            upload_dir=cfg.upload_dir,
        )
    except Exception:
        if picture_url:
            release_upload(cfg.upload_dir, picture_url)
        raise
    return {"success": True, "user": user}


def _text_field(form, name: str) -> str | None:
    """``None`` when *name* was not submitted, else its string value."""
    if name not in form:
        return None
    value = form[name]
    if not isinstance(value, str):
        raise ValidationFailed(name, f"{name} must be text")
    return value


@router.get("/{username}")
def get_user(username: str, engine: Engine = Depends(get_engine)):
    return {"success": True, "user": account_service.get_profile(engine, username)}


@router.put("/{username}/follow")
def toggle_follow(
    username: str,
    current: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    """Follow *username*, or unfollow if the caller already follows them."""
    result = graph_service.toggle_follow(engine, current["id"], username)
    return {"success": True, **result}


@router.get("/{username}/followers")
def get_followers(username: str, engine: Engine = Depends(get_engine)):
    return {"success": True, "followers": graph_service.list_followers(engine, username)}


@router.get("/{username}/following")
def get_following(username: str, engine: Engine = Depends(get_engine)):
    return {"success": True, "following": graph_service.list_following(engine, username)}
