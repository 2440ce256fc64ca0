"""Database session configuration."""

from __future__ import annotations

import sqlite3
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from heartline.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    # SET NULL / CASCADE on user deletion rely on SQLite enforcing foreign keys.
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def enable_sqlite_savepoints(target: Engine) -> None:
    """Have SQLAlchemy emit BEGIN itself so SAVEPOINT nests inside the transaction.

    pysqlite defers BEGIN until the first DML statement, which turns an early
    SAVEPOINT into the outermost transaction.
    """

    @event.listens_for(target, "connect")
    def _disable_driver_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def _connect_args(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={settings.db_statement_timeout_ms}"}
    return {}


# Ensure model modules are imported so that metadata is populated when create_all runs.
import heartline.models  # noqa: E402,F401

engine = create_engine(
    settings.effective_database_url,
    pool_pre_ping=True,
    echo=settings.sql_debug,
    connect_args=_connect_args(settings.effective_database_url),
)
if settings.effective_database_url.startswith("sqlite"):
    enable_sqlite_savepoints(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine)
