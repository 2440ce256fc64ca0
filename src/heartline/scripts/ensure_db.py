"""Create the configured Postgres database if it does not exist yet."""
from __future__ import annotations

import argparse
import logging
import sys
from urllib.parse import urlsplit, urlunsplit

import psycopg
from psycopg import sql

from heartline.core.observability import setup_logging
from heartline.core.settings import settings

logger = logging.getLogger(__name__)


def normalize_to_psycopg(uri: str) -> str:
    """Return a Postgres URI suitable for psycopg.connect().

    Strips quotes and whitespace and turns SQLAlchemy driver schemes
    (``postgresql+psycopg``) into plain ``postgresql``.
    """
    uri = (uri or "").strip().strip("'\"")
    if not uri:
        raise ValueError("DATABASE_URL is empty")

    parts = urlsplit(uri)
    scheme = parts.scheme
    if scheme.startswith("postgresql+"):
        scheme = "postgresql"
    if scheme != "postgresql":
        raise ValueError(f"Not a Postgres URL: {uri!r}")
    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


def split_admin_url(db_url: str) -> tuple[str, str]:
    """Return ``(maintenance_url, target_db)`` for ``db_url``."""
    parts = urlsplit(normalize_to_psycopg(db_url))
    target_db = parts.path.lstrip("/") or "postgres"
    if parts.netloc:
        admin_url = urlunsplit(("postgresql", parts.netloc, "/postgres", parts.query, ""))
    else:
        admin_url = "postgresql:///postgres"
    return admin_url, target_db


def ensure_database_exists(db_url: str) -> bool:
    """Create the target database; returns True when it was created."""
    admin_url, target_db = split_admin_url(db_url)
    logger.debug("Checking database %s via %s", target_db, admin_url)

    with psycopg.connect(admin_url, autocommit=True) as conn, conn.cursor() as cur:
        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (target_db,))
        if cur.fetchone() is not None:
            logger.info("Database %s already exists", target_db)
            return False
        cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(target_db)))
    logger.info("Created database %s", target_db)
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Ensure the configured database exists")
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to effective settings URL)",
    )
    args = parser.parse_args()
    setup_logging(settings.log_level, "text")

    raw_url = args.url or settings.effective_database_url
    if raw_url.startswith("sqlite"):
        logger.info("SQLite database is created on first connect; nothing to do")
        return
    try:
        ensure_database_exists(raw_url)
    except (ValueError, psycopg.Error) as exc:
        logger.error("ensure_db failed: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
