# tests/test_password_reset.py
from datetime import datetime, timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from conftest import register

from money_tracker.crud import crud_password_reset
from money_tracker.crud.crud_password_reset import InvalidTokenError, TokenExpiredError, UnknownEmailError
from money_tracker.crud.crud_user import authenticate_user, InvalidCredentialsError
from money_tracker.db.core import PasswordResetDB


def token_from_mail(message) -> str:
    return parse_qs(urlparse(message.reset_url).query)["token"][0]


# ===== LEDGER =====

def test_request_reset_unknown_email(client, db_session):
    with pytest.raises(UnknownEmailError):
        crud_password_reset.request_password_reset(db_session, "nobody@test.com")


def test_token_is_hashed_at_rest(client, db_session):
    register(client, email="r@test.com")
    token = crud_password_reset.request_password_reset(db_session, "r@test.com")

    entry = db_session.get(PasswordResetDB, "r@test.com")
    assert len(token) == 64
    assert entry.token_hash != token


def test_second_request_supersedes_first(client, db_session):
    register(client, email="r@test.com", password="original1")
    t1 = crud_password_reset.request_password_reset(db_session, "r@test.com")
    t2 = crud_password_reset.request_password_reset(db_session, "r@test.com")
    assert t1 != t2

    with pytest.raises(InvalidTokenError):
        crud_password_reset.consume_password_reset(db_session, "r@test.com", t1, "newpassword1")

    crud_password_reset.consume_password_reset(db_session, "r@test.com", t2, "newpassword1")
    assert authenticate_user(db_session, "r@test.com", "newpassword1")

    # Ledger row is gone, so T2 cannot be replayed
    assert db_session.get(PasswordResetDB, "r@test.com") is None
    with pytest.raises(InvalidTokenError):
        crud_password_reset.consume_password_reset(db_session, "r@test.com", t2, "anotherpass1")


def test_expired_token_is_rejected_and_kept(client, db_session):
    register(client, email="r@test.com", password="original1")
    issued_at = datetime.utcnow()
    token = crud_password_reset.request_password_reset(db_session, "r@test.com", now=issued_at)

    with pytest.raises(TokenExpiredError):
        crud_password_reset.consume_password_reset(
            db_session, "r@test.com", token, "newpassword1", now=issued_at + timedelta(minutes=61)
        )

    assert db_session.get(PasswordResetDB, "r@test.com") is not None
    assert authenticate_user(db_session, "r@test.com", "original1")


def test_token_valid_just_before_expiry(client, db_session):
    register(client, email="r@test.com")
    issued_at = datetime.utcnow()
    token = crud_password_reset.request_password_reset(db_session, "r@test.com", now=issued_at)

    crud_password_reset.consume_password_reset(
        db_session, "r@test.com", token, "newpassword1", now=issued_at + timedelta(minutes=59)
    )
    with pytest.raises(InvalidCredentialsError):
        authenticate_user(db_session, "r@test.com", "pw123456")


def test_concurrent_first_requests_keep_latest_token(client, db_session, session_factory, monkeypatch):
    register(client, email="r@test.com")
    other = session_factory()
    try:
        t1 = crud_password_reset.request_password_reset(other, "r@test.com")
    finally:
        other.close()

    # db_session read the ledger before the other request committed its row
    real_get = db_session.get
    stale = []

    def stale_get(entity, ident, **kwargs):
        if entity is PasswordResetDB and not stale:
            stale.append(ident)
            return None
        return real_get(entity, ident, **kwargs)

    monkeypatch.setattr(db_session, "get", stale_get)
    t2 = crud_password_reset.request_password_reset(db_session, "r@test.com")
    assert stale == ["r@test.com"]

    with pytest.raises(InvalidTokenError):
        crud_password_reset.consume_password_reset(db_session, "r@test.com", t1, "newpassword1")
    crud_password_reset.consume_password_reset(db_session, "r@test.com", t2, "newpassword1")
    assert authenticate_user(db_session, "r@test.com", "newpassword1")


def test_token_bound_to_email(client, db_session):
    register(client, email="a@test.com")
    register(client, email="b@test.com")
    token = crud_password_reset.request_password_reset(db_session, "a@test.com")

    with pytest.raises(InvalidTokenError):
        crud_password_reset.consume_password_reset(db_session, "b@test.com", token, "newpassword1")


def test_purge_expired_resets(client, db_session):
    register(client, email="old@test.com")
    register(client, email="new@test.com")
    now = datetime.utcnow()
    crud_password_reset.request_password_reset(db_session, "old@test.com", now=now - timedelta(hours=2))
    crud_password_reset.request_password_reset(db_session, "new@test.com", now=now)

    assert crud_password_reset.purge_expired_resets(db_session, now=now) == 1
    assert db_session.get(PasswordResetDB, "old@test.com") is None
    assert db_session.get(PasswordResetDB, "new@test.com") is not None


# ===== ENDPOINTS =====

def test_forgot_password_sends_reset_link(client, mailer):
    register(client, email="r@test.com")

    r = client.post("/forgot-password", json={"email": "r@test.com"})
    assert r.status_code == 200
    assert "sent a password reset link" in r.json()["message"]

    assert len(mailer.outbox) == 1
    message = mailer.outbox[0]
    assert message.recipient == "r@test.com"
    assert message.subject == "Reset your password"
    assert message.reset_url.startswith("http://localhost:5173/reset-password?")
    assert parse_qs(urlparse(message.reset_url).query)["email"] == ["r@test.com"]


def test_forgot_password_unknown_email(client, mailer):
    r = client.post("/forgot-password", json={"email": "nobody@test.com"})
    assert r.status_code == 400
    assert "email" in r.json()["errors"]
    assert mailer.outbox == []


def test_reset_password_flow(client, mailer):
    register(client, email="r@test.com", password="original1")
    client.post("/forgot-password", json={"email": "r@test.com"})
    client.post("/forgot-password", json={"email": "r@test.com"})
    t1, t2 = (token_from_mail(m) for m in mailer.outbox)

    payload = {"email": "r@test.com", "password": "newpassword1", "password_confirmation": "newpassword1"}

    r = client.post("/reset-password", json={**payload, "token": t1})
    assert r.status_code == 400
    assert r.json()["message"] == "❌ Failed to reset password. Invalid token or email."

    r = client.post("/reset-password", json={**payload, "token": t2})
    assert r.status_code == 200
    assert r.json()["message"] == "✅ Password has been reset successfully!"

    assert client.post("/login", json={"email": "r@test.com", "password": "newpassword1"}).status_code == 200

    r = client.post("/reset-password", json={**payload, "token": t2})
    assert r.status_code == 400


def test_reset_password_expired_token(client, db_session):
    register(client, email="r@test.com")
    token = crud_password_reset.request_password_reset(
        db_session, "r@test.com", now=datetime.utcnow() - timedelta(minutes=90)
    )

    r = client.post(
        "/reset-password",
        json={"email": "r@test.com", "token": token, "password": "newpassword1", "password_confirmation": "newpassword1"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "❌ Token has expired. Please request a new password reset link."


def test_reset_password_requires_confirmation(client):
    r = client.post(
        "/reset-password",
        json={"email": "r@test.com", "token": "x", "password": "newpassword1", "password_confirmation": "different1"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "The given data was invalid."
