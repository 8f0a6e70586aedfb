"""
chirp.database.engine — Engine factory & thread bridge
========================================================

Services take an :class:`~sqlalchemy.Engine` and open their own short-lived
``Session(engine)``; this module only builds that engine, creates the
tables, and offers :func:`run_db` for the two ``async`` upload handlers,
which must not block the event loop on a synchronous query.

    engine = create_db_engine()
    init_db(engine)
    post = await run_db(post_service.create_post, engine, user_id, content)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine

from chirp.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def create_db_engine() -> Engine:
    """Engine for ``$DATABASE_URL`` with a small pre-pinged pool.

    Raises
    ------
    RuntimeError
        If ``DATABASE_URL`` is not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and point it at your database."
        )

    engine = create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Database engine created → %s", engine.url.host)
    return engine


def init_db(engine: Engine) -> None:
    """Create any missing tables.  Alembic owns the schema in production."""
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Await a synchronous service call on the default thread pool."""
    return await asyncio.to_thread(func, *args, **kwargs)
