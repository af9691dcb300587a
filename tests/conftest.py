# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-moderation-suite")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from petsocial_moderation.api.v1.dependencies import get_content_resolver_dep
from petsocial_moderation.core.security import Role, create_access_token
from petsocial_moderation.db.session import Base, enable_sqlite_savepoints
from petsocial_moderation.db.session import get_db as app_get_session
from petsocial_moderation.main import app as fastapi_app
from petsocial_moderation.models import AuditLogEntry, AuditQueueEntry
from petsocial_moderation.repositories import AuditLogRepository, AuditQueueRepository
from petsocial_moderation.services.audit import AuditLogWriter
from petsocial_moderation.services.content import ContentRegistry
from petsocial_moderation.services.moderation import ModerationDecisionEngine
from petsocial_moderation.services.moderation_queue import ModerationQueueStore
from petsocial_moderation.services.retention import RetentionManager

TEST_DB_URL = "sqlite://"


class FrozenClock:
    """Manually advanced clock injected into services."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


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
    connection = engine.connect()
    transaction = connection.begin()
    # Service commits release a savepoint; the outer transaction is rolled back afterwards.
    SessionLocal = sessionmaker(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if something escaped the transaction.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture()
def content_registry() -> ContentRegistry:
    """Registry that treats every content type as present unless a test registers a lookup."""
    return ContentRegistry(strict=False)


@pytest.fixture()
def queue_store(db_session: Session, clock: FrozenClock) -> ModerationQueueStore:
    return ModerationQueueStore(db_session, clock=clock)


@pytest.fixture()
def audit_writer(db_session: Session, clock: FrozenClock) -> AuditLogWriter:
    return AuditLogWriter(db_session, clock=clock)


@pytest.fixture()
def retention(db_session: Session, clock: FrozenClock) -> RetentionManager:
    return RetentionManager(db_session, retention_days=90, clock=clock)


@pytest.fixture()
def decision_engine(
    db_session: Session,
    content_registry: ContentRegistry,
    audit_writer: AuditLogWriter,
    retention: RetentionManager,
    clock: FrozenClock,
) -> ModerationDecisionEngine:
    return ModerationDecisionEngine(
        db_session,
        content=content_registry,
        audit=audit_writer,
        retention=retention,
        clock=clock,
    )


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    content_registry: ContentRegistry,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_content_resolver_dep] = lambda: content_registry
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_content_resolver_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _auth_headers(subject: str, role: Role) -> dict[str, str]:
    token = create_access_token(subject, role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def user_headers() -> dict[str, str]:
    """Return authorization headers for an ordinary user."""
    return _auth_headers("user-1", Role.USER)


@pytest.fixture()
def other_user_headers() -> dict[str, str]:
    return _auth_headers("user-2", Role.USER)


@pytest.fixture()
def moderator_headers() -> dict[str, str]:
    """Return authorization headers for a moderator."""
    return _auth_headers("mod-1", Role.MODERATOR)


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    """Return authorization headers for an admin."""
    return _auth_headers("admin-1", Role.ADMIN)


class UnavailableAuditLog(AuditLogRepository):
    """Primary audit store that rejects every write."""

    def add(self, **fields: Any) -> AuditLogEntry:
        raise OperationalError("INSERT INTO audit_log", {}, Exception("database is locked"))


class UnavailableAuditQueue(AuditQueueRepository):
    """Fallback queue that rejects every write."""

    def add(self, **fields: Any) -> AuditQueueEntry:
        raise OperationalError("INSERT INTO audit_queue", {}, Exception("disk I/O error"))


@pytest.fixture()
def unavailable_log(db_session: Session) -> UnavailableAuditLog:
    return UnavailableAuditLog(db_session)


@pytest.fixture()
def unavailable_queue(db_session: Session) -> UnavailableAuditQueue:
    return UnavailableAuditQueue(db_session)
