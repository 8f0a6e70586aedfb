"""
chirp.services.account_service — Registration, Login & Profiles
=================================================================

Owns the ``users`` table: identity, password hash, profile metadata.

Passwords are bcrypt-hashed before they reach the session and are never
logged.  Login failures are indistinguishable to the caller whether the
e-mail is unknown or the password is wrong; an unknown e-mail still pays
for one bcrypt check so response time does not leak which it was.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

import bcrypt
from sqlalchemy import Engine, String, case, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from chirp.constants import (
    BIO_MAX_LENGTH,
    FULL_NAME_MAX_LENGTH,
    PASSWORD_MAX_BYTES,
    PASSWORD_MIN_LENGTH,
    SEARCH_RESULT_LIMIT,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    USERNAME_PATTERN,
)
from chirp.database.models import User
from chirp.services.errors import (
    DuplicateIdentity,
    InvalidCredentials,
    UserNotFound,
    ValidationFailed,
)
from chirp.services.serializers import public_profile, search_result, with_profile_joins
from chirp.services.upload_service import release_upload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------
def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("ascii")


def check_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("ascii"))
    except ValueError:
        # Over-long password or a corrupt hash: never a match.
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password("chirp-timing-equaliser", rounds)


# ---------------------------------------------------------------------------
# Input normalisation
# ---------------------------------------------------------------------------
def _clean_username(username: str) -> str:
    username = username.strip()
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationFailed(
            "username",
            f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters",
        )
    if not USERNAME_PATTERN.match(username):
        raise ValidationFailed(
            "username", "Username may only contain letters, numbers and underscores"
        )
    return username


def _clean_password(password: str) -> str:
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationFailed(
            "password", f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        )
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationFailed(
            "password", f"Password must be at most {PASSWORD_MAX_BYTES} bytes"
        )
    return password


def _clean_full_name(full_name: str) -> str:
    full_name = full_name.strip()
    if not full_name:
        raise ValidationFailed("fullName", "Full name is required")
    if len(full_name) > FULL_NAME_MAX_LENGTH:
        raise ValidationFailed(
            "fullName", f"Full name must be at most {FULL_NAME_MAX_LENGTH} characters"
        )
    return full_name


def _clean_bio(bio: str) -> str:
    bio = bio.strip()
    if len(bio) > BIO_MAX_LENGTH:
        raise ValidationFailed("bio", f"Bio must be at most {BIO_MAX_LENGTH} characters")
    return bio


def _load_profile(session: Session, *where) -> User | None:
    return session.scalar(with_profile_joins(select(User).where(*where)))


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------
def register(
    engine: Engine,
    *,
    username: str,
    email: str,
    password: str,
    full_name: str,
    bcrypt_rounds: int = 12,
) -> dict:
    """Create an account and return its profile (including e-mail).

    Raises :class:`DuplicateIdentity` when the e-mail or username is taken;
    nothing is written in that case.
    """
    username = _clean_username(username)
    email = email.strip().lower()
    password = _clean_password(password)
    full_name = _clean_full_name(full_name)

    with Session(engine) as session:
        existing = session.scalar(
            select(User).where(or_(User.email == email, User.username == username))
        )
        if existing is not None:
            if existing.email == email:
                raise DuplicateIdentity("Email already registered")
            raise DuplicateIdentity("Username already taken")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password, bcrypt_rounds),
            full_name=full_name,
        )
        session.add(user)
        try:
            session.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration.
            session.rollback()
            raise DuplicateIdentity() from exc

        logger.info("Registered user %s (id=%s)", user.username, user.id)
        user = _load_profile(session, User.id == user.id)
        return public_profile(user, include_email=True)


def authenticate(engine: Engine, email: str, password: str, bcrypt_rounds: int = 12) -> dict:
    """Check credentials and return the caller's profile.

    Raises :class:`InvalidCredentials` for an unknown e-mail *or* a wrong
    password.
    """
    email = email.strip().lower()
    with Session(engine) as session:
        user = _load_profile(session, User.email == email)
        if user is None:
            check_password(password, _dummy_hash(bcrypt_rounds))
            logger.warning("Failed login for %s", email)
            raise InvalidCredentials()
        if not check_password(password, user.password_hash):
            logger.warning("Failed login for %s", email)
            raise InvalidCredentials()
        return public_profile(user, include_email=True)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_identity(engine: Engine, user_id: int) -> dict | None:
    """Minimal ``{id, username}`` for a token's subject, or ``None``."""
    with Session(engine) as session:
        row = session.execute(
            select(User.id, User.username).where(User.id == user_id)
        ).first()
        if row is None:
            return None
        return {"id": row.id, "username": row.username}


def get_profile_by_id(engine: Engine, user_id: int, *, include_email: bool = False) -> dict:
    with Session(engine) as session:
        user = _load_profile(session, User.id == user_id)
        if user is None:
            raise UserNotFound()
        return public_profile(user, include_email=include_email)


def get_profile(engine: Engine, username: str) -> dict:
    """Public profile by username (no e-mail)."""
    with Session(engine) as session:
        user = _load_profile(session, User.username == username)
        if user is None:
            raise UserNotFound()
        return public_profile(user)


def search_users(engine: Engine, query: str | None) -> list[dict]:
    """Case-insensitive substring match on username or full name.

    Blank queries return ``[]``.  Prefix matches on the username sort first;
    the rest follow alphabetically.  At most ``SEARCH_RESULT_LIMIT`` rows.
    """
    q = (query or "").strip().lower()
    if not q:
        return []

    username_lc = func.lower(User.username, type_=String)
    stmt = (
        select(User)
        .where(
            or_(
                username_lc.contains(q, autoescape=True),
                func.lower(User.full_name, type_=String).contains(q, autoescape=True),
            )
        )
        .order_by(
            case((username_lc.startswith(q, autoescape=True), 0), else_=1),
            username_lc,
        )
        .limit(SEARCH_RESULT_LIMIT)
    )
    with Session(engine) as session:
        return [search_result(u) for u in session.scalars(stmt).all()]


# ---------------------------------------------------------------------------
# Profile edits
# ---------------------------------------------------------------------------
def update_profile(
    engine: Engine,
    user_id: int,
    *,
    full_name: str | None = None,
    bio: str | None = None,
    picture_ref: str | None = None,
    upload_dir: Path | None = None,
) -> dict:
    """Apply the given profile fields and return the updated profile.

    ``None`` means "leave unchanged"; an empty *bio* clears it.  When a new
    picture replaces an old one, the old file is released after the commit
    and a failure to remove it is only logged.
    """
    if full_name is not None:
        full_name = _clean_full_name(full_name)
    if bio is not None:
        bio = _clean_bio(bio)

    with Session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            raise UserNotFound()

        previous_picture = user.profile_picture
        if full_name is not None:
            user.full_name = full_name
        if bio is not None:
            user.bio = bio
        if picture_ref is not None:
            user.profile_picture = picture_ref
        session.commit()

        if picture_ref is not None and previous_picture and previous_picture != picture_ref:
            if upload_dir is not None:
                release_upload(upload_dir, previous_picture)

        user = _load_profile(session, User.id == user_id)
        return public_profile(user, include_email=True)
