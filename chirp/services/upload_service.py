"""
chirp.services.upload_service — Image upload handling
=======================================================

Post images and profile pictures are written under ``<upload_dir>/posts``
and ``<upload_dir>/profiles`` and served as static files from
``/uploads/...``.

Disk writes are not tied to the DB transaction that references them.  A
crash between the two can leave an orphan file or a dangling reference;
nothing reconciles them.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path

from chirp.constants import (
    ALLOWED_IMAGE_EXTENSIONS,
    ALLOWED_IMAGE_MIME_TYPES,
    UPLOAD_URL_PREFIX,
)
from chirp.services.errors import ValidationFailed

logger = logging.getLogger(__name__)


def ensure_upload_dir(upload_dir: Path) -> None:
    """Create the upload directory if it doesn't exist."""
    upload_dir.mkdir(parents=True, exist_ok=True)


def validate_image(
    field: str,
    filename: str,
    content: bytes,
    content_type: str | None,
    max_bytes: int,
) -> str:
    """Check size, extension and MIME type; return the lower-cased extension.

    Raises
    ------
    ValidationFailed
        Tagged with *field* so the client can point at the right input.
    """
    if len(content) > max_bytes:
        raise ValidationFailed(
            field,
            f"File too large (max {max_bytes // 1024 // 1024}MB)",
        )

    ext = Path(filename).suffix.lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationFailed(field, "Only image files are allowed!")

    if content_type not in ALLOWED_IMAGE_MIME_TYPES:
        raise ValidationFailed(field, "Only image files are allowed!")

    return ext


async def save_upload(
    upload_dir: Path,
    subdir: str,
    *,
    field: str,
    filename: str,
    content: bytes,
    content_type: str | None,
    max_bytes: int,
) -> str:
    """Validate and persist an uploaded image.

    Returns
    -------
    str
        URL path to the saved file (e.g. ``/uploads/posts/post-ab12….png``).
    """
    ext = validate_image(field, filename, content, content_type, max_bytes)

    prefix = subdir.rstrip("s")
    unique_name = f"{prefix}-{uuid.uuid4().hex}{ext}"
    dest_dir = upload_dir / subdir
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = dest_dir / unique_name

    # Offload blocking file I/O to a thread to avoid stalling the event loop
    await asyncio.to_thread(dest.write_bytes, content)
    logger.info("Stored upload %s (%d bytes)", dest, len(content))

    return f"{UPLOAD_URL_PREFIX}/{subdir}/{unique_name}"


def _resolve(upload_dir: Path, url_path: str) -> Path | None:
    """Map ``/uploads/<subdir>/<name>`` back to a file inside *upload_dir*."""
    if not url_path.startswith(UPLOAD_URL_PREFIX + "/"):
        return None
    relative = url_path[len(UPLOAD_URL_PREFIX) + 1:]
    root = upload_dir.resolve()
    candidate = (root / relative).resolve()
    if root not in candidate.parents:
        return None
    return candidate


def release_upload(upload_dir: Path, url_path: str) -> bool:
    """Best-effort removal of an uploaded file by its URL path.

    Returns True if the file existed and was deleted.  OS errors are logged
    and swallowed: the caller's logical delete has already happened.
    """
    filepath = _resolve(upload_dir, url_path)
    if filepath is None:
        return False
    try:
        if filepath.is_file():
            filepath.unlink()
            logger.info("Released upload %s", url_path)
            return True
    except OSError:
        logger.warning("Could not remove upload %s", url_path, exc_info=True)
    return False
