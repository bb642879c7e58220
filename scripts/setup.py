#!/usr/bin/env python3
"""Setup script for the booking flow API: applies the database migrations."""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from booking_flow.core.config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DB_DIR = Path(__file__).parent.parent / "server" / "db"


def setup_database() -> None:
    """Bring the draft storage schema up to date."""
    logger.info(f"Migrating {settings.database_url}")

    alembic_cfg = Config(str(DB_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(DB_DIR / "alembic"))
    command.upgrade(alembic_cfg, "head")

    logger.info("Database migrations completed")


def main() -> None:
    setup_database()
    logger.info("Setup completed. Start the API with: uvicorn booking_flow.main:app --reload")


if __name__ == "__main__":
    main()
