# tests/conftest.py
# Test setup: temporary SQLite DB per test, dependency overrides for sessions and mail.

import os
import sys
from pathlib import Path

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("MAIL_BACKEND", "log")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# Ensure repo root on sys.path so "import money_tracker" works
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from money_tracker.db.core import Base, get_db, make_engine  # noqa: E402
from money_tracker.main import app as fastapi_app  # noqa: E402
from money_tracker.services.mailer import get_mailer  # noqa: E402


class CapturingMailer:
    """Keeps outgoing messages instead of sending them."""

    def __init__(self):
        self.outbox = []

    def send(self, message):
        self.outbox.append(message)


@pytest.fixture()
def test_engine(tmp_path: Path):
    # File-based SQLite so the app and the test share the same DB
    engine = make_engine(f"sqlite:///{tmp_path / 'test_money_tracker.db'}")
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def mailer():
    return CapturingMailer()


@pytest.fixture()
def client(session_factory, mailer):
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_test_db
    fastapi_app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


def register(client, name="Test User", email="t@test.com", password="pw123456"):
    r = client.post(
        "/register",
        json={
            "name": name,
            "email": email,
            "password": password,
            "password_confirmation": password,
        },
    )
    assert r.status_code == 200, r.text
    return r.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers(client):
    return bearer(register(client)["access_token"])


@pytest.fixture()
def other_headers(client):
    return bearer(register(client, name="Other User", email="other@test.com")["access_token"])
