# src/heartline/scripts/migrate.py
"""Upgrade the configured database to the latest Alembic revision."""
from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from heartline.core.observability import setup_logging
from heartline.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def build_config(url: str | None = None) -> Config:
    """Return an Alembic config pointing at the repository's migrations."""
    cfg = Config(str(MIGRATIONS_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", url or settings.database_url_sync)
    return cfg


def run_upgrade_head(url: str | None = None) -> None:
    cfg = build_config(url)
    logger.info("Upgrading schema to head")
    command.upgrade(cfg, "head")


if __name__ == "__main__":
    setup_logging(settings.log_level, "text")
    run_upgrade_head()
