# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-passphrase")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from chat_logger.api.v1 import dependencies  # noqa: E402
from chat_logger.api.v1.endpoints.auth import create_access_token  # noqa: E402
from chat_logger.db.session import Base  # noqa: E402
from chat_logger.main import app as fastapi_app  # noqa: E402
from chat_logger.services import (  # noqa: E402
    ConversationStore,
    MessageCipher,
    MessageService,
    ParticipantView,
    UserDirectory,
)

TEST_PASSPHRASE = "test-encryption-passphrase"
TEST_MAX_SIZE = 10


def _sqlite_engine(path: Path) -> Engine:
    return create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    """File-backed SQLite database private to one test, safe to share across threads."""
    engine = _sqlite_engine(tmp_path / "chat.db")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def empty_session_factory(tmp_path: Path) -> Iterator[sessionmaker[Session]]:
    """Session factory bound to a database whose tables were never created."""
    engine = _sqlite_engine(tmp_path / "missing.db")
    try:
        yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    finally:
        engine.dispose()


@pytest.fixture(scope="session")
def cipher() -> MessageCipher:
    return MessageCipher(TEST_PASSPHRASE)


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> ConversationStore:
    return ConversationStore(session_factory)


@pytest.fixture()
def directory(session_factory: sessionmaker[Session]) -> UserDirectory:
    return UserDirectory(session_factory)


@pytest.fixture()
def service(store: ConversationStore, cipher: MessageCipher, directory: UserDirectory) -> MessageService:
    return MessageService(store, cipher, directory, max_conversation_size=TEST_MAX_SIZE)


@pytest.fixture()
def alice(directory: UserDirectory) -> ParticipantView:
    return directory.upsert("alice@local", "alice")


@pytest.fixture()
def bob(directory: UserDirectory) -> ParticipantView:
    return directory.upsert("bob@local", "bob")


@pytest.fixture()
def carol(directory: UserDirectory) -> ParticipantView:
    return directory.upsert("carol@local", "carol")


@pytest.fixture()
def app(directory: UserDirectory, service: MessageService) -> Iterator[FastAPI]:
    """The application wired to the per-test database."""
    fastapi_app.dependency_overrides[dependencies.get_user_directory] = lambda: directory
    fastapi_app.dependency_overrides[dependencies.get_message_service] = lambda: service
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def auth_headers() -> Callable[[ParticipantView], dict[str, str]]:
    """Build bearer headers for a participant."""

    def _headers(participant: ParticipantView) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(participant.id)}"}

    return _headers
