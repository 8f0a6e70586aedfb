"""
chirp.api.main — FastAPI application entry point
==================================================

Run with::

    uvicorn chirp.api.main:app --reload --port 5000

or ``python -m chirp``, which also creates the tables first.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

load_dotenv()

from chirp import __version__  # noqa: E402
from chirp.api.auth import router as auth_router  # noqa: E402
from chirp.api.deps import get_config, get_engine  # noqa: E402
from chirp.api.errors import install_error_handlers  # noqa: E402
from chirp.api.routes.posts import router as posts_router  # noqa: E402
from chirp.api.routes.users import router as users_router  # noqa: E402
from chirp.constants import UPLOAD_URL_PREFIX  # noqa: E402
from chirp.services.upload_service import ensure_upload_dir  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


def mount_uploads(app: FastAPI) -> None:
    """Serve the configured upload directory under ``/uploads``.

    A mount left by an earlier startup is replaced, so the directory always
    follows the current config.
    """
    app.router.routes[:] = [
        r for r in app.router.routes if getattr(r, "name", None) != "uploads"
    ]
    cfg = app.dependency_overrides.get(get_config, get_config)()
    ensure_upload_dir(cfg.upload_dir)
    app.mount(
        UPLOAD_URL_PREFIX,
        StaticFiles(directory=str(cfg.upload_dir)),
        name="uploads",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine, expose uploads."""
    mount_uploads(app)
    engine = app.dependency_overrides.get(get_engine, get_engine)()
    logger.info("Chirp API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("Chirp API shutting down")


app = FastAPI(
    title="Chirp API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

# Mount routers
app.include_router(auth_router, prefix="/api")
app.include_router(posts_router, prefix="/api")
app.include_router(users_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
