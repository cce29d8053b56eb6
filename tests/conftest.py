from __future__ import annotations

import os
import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

# Settings are read at import time
os.environ.setdefault("ENV", "test")
os.environ.setdefault("AUTH_MODE", "dev")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ADMIN_EMAILS", "admin@sciencehub.test")
os.environ.setdefault("EXPORT_TIMEZONE", "Europe/Belgrade")

from sciencehub.db import create_schema, get_db, open_session  # noqa: E402
from sciencehub.main import app  # noqa: E402
from sciencehub.models import Event, Registration, RegistrationTicket  # noqa: E402
from sciencehub.models.registration import RegistrationStatus  # noqa: E402
from sciencehub.services.qr_codes import registration_token  # noqa: E402

ADMIN_EMAIL = "admin@sciencehub.test"


def auth_headers(email: str) -> dict[str, str]:
    return {"Authorization": f"Bearer dev_{email}"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    db = open_session(engine)
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(engine):
    def _get_db():
        db = open_session(engine)
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_headers(ADMIN_EMAIL)


@pytest.fixture
def user_headers() -> dict[str, str]:
    return auth_headers("member@example.com")


@pytest.fixture
def make_event(db_session):
    def _make(**overrides) -> Event:
        slug = overrides.pop("slug", f"event-{uuid.uuid4().hex[:8]}")
        event = Event(slug=slug, title=overrides.pop("title", "Open lab night"), **overrides)
        db_session.add(event)
        db_session.commit()
        return event

    return _make


@pytest.fixture
def make_registration(db_session):
    def _make(event: Event, tickets: list[dict] | None = None, **overrides) -> Registration:
        values = {
            "full_name": "Ana Petrović",
            "email": f"{uuid.uuid4().hex[:8]}@example.com",
            "adult_tickets": 1,
            "child_tickets": 0,
            "total_amount": Decimal("0"),
            "registration_status": RegistrationStatus.ACTIVE,
            "qr_code": registration_token(),
        }
        values.update(overrides)
        registration = Registration(event_id=event.id, **values)
        registration.tickets = [RegistrationTicket(**t) for t in tickets or []]
        db_session.add(registration)
        db_session.commit()
        return registration

    return _make

