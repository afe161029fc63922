from __future__ import annotations

import os
from collections.abc import Callable
from datetime import date

import pytest
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from magic_yarn.db import models
from magic_yarn.db.base import Base

# Fixed "today" for every API test that plans or counts upcoming work.
TODAY = date(2024, 1, 15)


@pytest.fixture()
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture()
def client(db_session: Session, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """TestClient with get_db overridden to use the in-memory session."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("FERNET_KEY", Fernet.generate_key().decode("utf-8"))
    monkeypatch.setenv("APP_ENV", "test")

    from magic_yarn.core.security import get_token_service
    from magic_yarn.core.settings import get_settings

    get_settings.cache_clear()
    get_token_service.cache_clear()

    from magic_yarn.api.deps import get_db, get_today
    from magic_yarn.api.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_today] = lambda: TODAY
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()
    get_settings.cache_clear()
    get_token_service.cache_clear()
    os.environ.pop("DATABASE_URL", None)


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., models.UserProfile]:
    counter = {"n": 0}

    def _make(role: str = "admin", is_approved: bool = True, **kwargs) -> models.UserProfile:
        counter["n"] += 1
        user = models.UserProfile(
            email=kwargs.pop("email", f"user{counter['n']}@example.org"),
            full_name=kwargs.pop("full_name", f"User {counter['n']}"),
            role=role,
            is_approved=is_approved,
            **kwargs,
        )
        db_session.add(user)
        db_session.flush()
        return user

    return _make


@pytest.fixture()
def auth_headers(client: TestClient) -> Callable[[models.UserProfile], dict[str, str]]:
    """Bearer headers carrying a session token for *user*."""
    from magic_yarn.core.security import get_token_service

    def _headers(user: models.UserProfile) -> dict[str, str]:
        return {"Authorization": f"Bearer {get_token_service().issue_session(user.id)}"}

    return _headers


@pytest.fixture()
def make_recipient(db_session: Session) -> Callable[..., models.Recipient]:
    def _make(name: str = "St. Mary's Hospital", **kwargs) -> models.Recipient:
        fields = {
            "shipment_frequency_months": 3,
            "address": "12 Main St",
            "city": "Boston",
            "state": "MA",
            "zip": "02110",
        }
        fields.update(kwargs)
        recipient = models.Recipient(name=name, **fields)
        db_session.add(recipient)
        db_session.flush()
        return recipient

    return _make


@pytest.fixture()
def make_delivery(db_session: Session) -> Callable[..., models.Delivery]:
    def _make(recipient: models.Recipient, **kwargs) -> models.Delivery:
        delivery = models.Delivery(recipient_id=recipient.id, **kwargs)
        db_session.add(delivery)
        db_session.flush()
        return delivery

    return _make
