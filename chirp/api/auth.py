"""
chirp.api.auth — Registration, login & JWT issuance
=====================================================

Tokens are stateless HS256 JWTs carrying the user id (``sub``) and an
expiry.  There is no revocation list: a token stays valid until ``exp``.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr
from sqlalchemy import Engine

from chirp.api.deps import (
    JWT_ALGORITHM,
    JWT_SECRET,
    get_config,
    get_current_user,
    get_engine,
)
from chirp.config import ChirpConfig
from chirp.services import account_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class RegisterBody(BaseModel):
    username: str
    email: EmailStr
    password: str
    fullName: str


class LoginBody(BaseModel):
    email: EmailStr
    password: str


# ---------------------------------------------------------------------------
# Token issuance
# ---------------------------------------------------------------------------
def issue_token(user_id: int, ttl_hours: int) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(hours=ttl_hours),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterBody,
    engine: Engine = Depends(get_engine),
    cfg: ChirpConfig = Depends(get_config),
):
    """Create an account and log it in."""
    user = account_service.register(
        engine,
        username=body.username,
        email=body.email,
        password=body.password,
        full_name=body.fullName,
        bcrypt_rounds=cfg.bcrypt_rounds,
    )
    return {
        "success": True,
        "token": issue_token(user["id"], cfg.token_ttl_hours),
        "user": user,
    }


@router.post("/login")
def login(
    body: LoginBody,
    engine: Engine = Depends(get_engine),
    cfg: ChirpConfig = Depends(get_config),
):
    """Exchange e-mail + password for a token."""
    user = account_service.authenticate(
        engine, body.email, body.password, bcrypt_rounds=cfg.bcrypt_rounds
    )
    return {
        "success": True,
        "token": issue_token(user["id"], cfg.token_ttl_hours),
        "user": user,
    }


@router.get("/me")
def me(
    current: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    """Return the caller's full profile, e-mail included."""
    user = account_service.get_profile_by_id(engine, current["id"], include_email=True)
    return {"success": True, "user": user}
