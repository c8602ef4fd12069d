# src/commons_board/scripts/migrate.py
"""Apply Alembic migrations against the configured database."""
from __future__ import annotations

import logging
import os

from alembic import command
from alembic.config import Config

from commons_board.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def alembic_config(url: str | None = None) -> Config:
    cfg = Config(os.path.join(MIGRATIONS_DIR, "alembic.ini"))
    # Alembic runs on a sync driver
    cfg.set_main_option("sqlalchemy.url", url or settings.database_url_sync)
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    return cfg


def run_upgrade_head(url: str | None = None) -> None:
    logger.info("Upgrading schema to head")
    command.upgrade(alembic_config(url), "head")


if __name__ == "__main__":
    run_upgrade_head()
