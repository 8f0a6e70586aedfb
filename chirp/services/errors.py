"""
chirp.services.errors — Domain Error Taxonomy
===============================================

Services raise these; the API layer (:mod:`chirp.api.errors`) turns them
into ``{"success": false, ...}`` responses using ``status_code``.
Nothing here knows about HTTP beyond the status number.
"""

from __future__ import annotations


class ChirpError(Exception):
    """Base class for every expected, user-facing failure."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# 400 — bad input
# ---------------------------------------------------------------------------
class ValidationFailed(ChirpError):
    """Malformed or out-of-range input for a named field."""

    status_code = 400
    default_message = "Invalid value"

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message)

    def to_errors(self) -> list[dict[str, str]]:
        return [{"field": self.field, "message": self.message}]


class InvalidContent(ValidationFailed):
    """Post or comment text that is empty or too long."""


class DuplicateIdentity(ChirpError):
    status_code = 400
    default_message = "Email or username already registered"


class SelfFollow(ChirpError):
    status_code = 400
    default_message = "You cannot follow yourself"


# ---------------------------------------------------------------------------
# 401 / 403 — who you are, what you may touch
# ---------------------------------------------------------------------------
class InvalidCredentials(ChirpError):
    """Deliberately generic: unknown e-mail and wrong password look the same."""

    status_code = 401
    default_message = "Invalid credentials"


class NotAuthorized(ChirpError):
    status_code = 403
    default_message = "Not authorized"


# ---------------------------------------------------------------------------
# 404 — missing entities
# ---------------------------------------------------------------------------
class NotFound(ChirpError):
    status_code = 404
    default_message = "Not found"


class UserNotFound(NotFound):
    default_message = "User not found"


class PostNotFound(NotFound):
    default_message = "Post not found"
