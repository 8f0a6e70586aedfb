"""
chirp.constants — Shared Limits & Patterns
============================================

Single source of truth for input limits.  Import from here instead of
duplicating numbers in schemas, services, and tests.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_BYTES = 72  # bcrypt ignores/rejects anything past 72 bytes
FULL_NAME_MAX_LENGTH = 50
BIO_MAX_LENGTH = 160

# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------
POST_MAX_LENGTH = 500
COMMENT_MAX_LENGTH = 300

# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
SEARCH_RESULT_LIMIT = 10

# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------
POST_IMAGE_SUBDIR = "posts"
PROFILE_IMAGE_SUBDIR = "profiles"
UPLOAD_URL_PREFIX = "/uploads"
ALLOWED_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})
ALLOWED_IMAGE_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
})
