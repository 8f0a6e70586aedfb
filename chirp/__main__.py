"""
chirp.__main__ — Entry point for ``python -m chirp``
=====================================================

Wiring:
1. Load .env (secrets, DATABASE_URL).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Make sure the upload directory exists.
5. Serve the API with uvicorn (blocking).
"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

from chirp.config import load_config
from chirp.database.engine import create_db_engine, init_db
from chirp.services.upload_service import ensure_upload_dir

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("chirp")


def main() -> None:
    """Bootstrap and run the Chirp API."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    cfg = load_config()
    logger.info("Config loaded — Site: %s", cfg.site_name)

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)
    engine.dispose()

    # 4. Uploads.
    ensure_upload_dir(cfg.upload_dir)

    # 5. Serve (blocks until Ctrl+C or SIGTERM).
    host = os.getenv("CHIRP_HOST", "0.0.0.0")
    port = int(os.getenv("CHIRP_PORT", "5000"))
    logger.info("Starting Chirp API on %s:%d…", host, port)
    uvicorn.run("chirp.api.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
