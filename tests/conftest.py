# tests/conftest.py
from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "heartline-test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FORMAT", "text")

from heartline.api.v1.dependencies import get_notifier
from heartline.core.security import create_access_token
from heartline.db.session import Base, enable_sqlite_savepoints
from heartline.db.session import get_db as app_get_session
from heartline.main import app as fastapi_app
from heartline.models import User

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)


class RecordingNotifier:
    """Stands in for NotificationClient and remembers what would have been sent."""

    def __init__(self) -> None:
        self.matches: list[dict[str, Any]] = []
        self.messages: list[dict[str, Any]] = []

    async def notify_match(self, conversation_id: uuid.UUID, user_ids: list[uuid.UUID]) -> bool:
        self.matches.append({"conversation_id": conversation_id, "user_ids": set(user_ids)})
        return True

    async def notify_message(
        self,
        conversation_id: uuid.UUID,
        message_id: uuid.UUID,
        sender_id: uuid.UUID,
        recipient_id: uuid.UUID | None,
    ) -> bool:
        self.messages.append(
            {
                "conversation_id": conversation_id,
                "message_id": message_id,
                "sender_id": sender_id,
                "recipient_id": recipient_id,
            }
        )
        return True

    async def close(self) -> None:
        return None


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session whose commits only release savepoints of an outer transaction."""
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    notifier: RecordingNotifier,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users."""

    def _make_user(name: str | None = None, *, verified: bool = True) -> User:
        index = next(_USER_COUNTER)
        user = User(
            email=f"user{index}@example.test",
            name=name or f"User {index}",
            avatar_url=f"https://cdn.example.test/avatars/{index}.png",
            verified=verified,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("Alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("Bob")


def auth_headers(user: User) -> dict[str, str]:
    """Return authorization headers for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def alice_auth(alice: User) -> dict[str, str]:
    return auth_headers(alice)


@pytest.fixture()
def bob_auth(bob: User) -> dict[str, str]:
    return auth_headers(bob)


@pytest.fixture()
def auth_for() -> Callable[[User], dict[str, str]]:
    return auth_headers
