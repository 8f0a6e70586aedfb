"""
chirp.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for the soft, non-secret settings of a Chirp
deployment (upload location, token lifetime, feed paging, upload limits).
Secrets (``JWT_SECRET``) and connection strings (``DATABASE_URL``) stay in
the environment / ``.env``.

The loaded :class:`ChirpConfig` is frozen: it is built once at startup and
handed to whoever needs it.

Usage::

    from chirp.config import load_config

    cfg = load_config()          # reads ./config.yaml (or $CHIRP_CONFIG)
    print(cfg.site_name)         # "Chirp"
    print(cfg.upload_dir)        # PosixPath('uploads')
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = "config.yaml"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ChirpConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    site_name: str

    # Storage
    upload_dir: Path

    # Auth
    token_ttl_hours: int = 168
    bcrypt_rounds: int = 12

    # Feed paging
    feed_page_size: int = 20
    feed_max_page_size: int = 100

    # Upload limits
    post_image_max_bytes: int = 5 * 1024 * 1024
    profile_image_max_bytes: int = 2 * 1024 * 1024


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path | None = None) -> ChirpConfig:
    """Read *path* and return a :class:`ChirpConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        ``$CHIRP_CONFIG`` or ``config.yaml`` in the current directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path or os.getenv("CHIRP_CONFIG", DEFAULT_CONFIG_PATH))
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = ChirpConfig(site_name="", upload_dir=Path("."))
    return ChirpConfig(
        site_name=raw["site_name"],
        upload_dir=Path(os.getenv("CHIRP_UPLOAD_DIR") or raw["upload_dir"]),
        token_ttl_hours=int(raw.get("token_ttl_hours", defaults.token_ttl_hours)),
        bcrypt_rounds=int(raw.get("bcrypt_rounds", defaults.bcrypt_rounds)),
        feed_page_size=int(raw.get("feed_page_size", defaults.feed_page_size)),
        feed_max_page_size=int(
            raw.get("feed_max_page_size", defaults.feed_max_page_size)
        ),
        post_image_max_bytes=int(
            raw.get("post_image_max_bytes", defaults.post_image_max_bytes)
        ),
        profile_image_max_bytes=int(
            raw.get("profile_image_max_bytes", defaults.profile_image_max_bytes)
        ),
    )
