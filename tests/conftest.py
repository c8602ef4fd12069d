# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-commons-board")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from commons_board.core.security import create_admin_token
from commons_board.db.session import Base, enable_sqlite_foreign_keys
from commons_board.db.session import get_db as app_get_session
from commons_board.main import app as fastapi_app
from commons_board.models import Discussion, UserAccount
from commons_board.schemas.discussion import (
    DonationCreate,
    EventCreate,
    IncidentCreate,
    PollCreate,
    VolunteerCreate,
)
from commons_board.services import discussions

TEST_DB_URL = "sqlite://"

_CREATE_SCHEMAS = {
    "Poll": PollCreate,
    "Event": EventCreate,
    "Volunteer": VolunteerCreate,
    "Donation": DonationCreate,
    "Report": IncidentCreate,
}


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Yield a plain session; handlers commit for real, so tables are wiped afterwards."""
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., UserAccount]:
    """Return a factory that provisions resident accounts."""

    def _make_user(identity: str, username: str | None = None, **fields: Any) -> UserAccount:
        account = UserAccount(identity=identity, username=username, **fields)
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _make_user


@pytest.fixture()
def alice(make_user: Callable[..., UserAccount]) -> UserAccount:
    return make_user("+15550000001", "alice")


@pytest.fixture()
def bob(make_user: Callable[..., UserAccount]) -> UserAccount:
    return make_user("+15550000002", "bob")


@pytest.fixture()
def carol(make_user: Callable[..., UserAccount]) -> UserAccount:
    return make_user("+15550000003", "carol")


@pytest.fixture()
def make_discussion(db_session: Session) -> Callable[..., Discussion]:
    """Return a factory that creates discussions through the service layer."""

    def _make_discussion(
        discussion_type: str = "Report",
        *,
        author_identity: str = "Anonymous",
        location: str = "Riverside",
        title: str = "Test discussion",
        **fields: Any,
    ) -> Discussion:
        if discussion_type == "Poll":
            fields.setdefault("options", ["Yes", "No"])
        if discussion_type == "Donation":
            fields.setdefault("goal_amount", 1000)
        payload = _CREATE_SCHEMAS[discussion_type](
            type=discussion_type,
            title=title,
            location=location,
            author_identity=author_identity,
            **fields,
        )
        return discussions.create_discussion(db_session, payload).discussion

    return _make_discussion


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    """Return authorization headers for an administrator."""
    token = create_admin_token("admin-1")
    return {"Authorization": f"Bearer {token}"}
