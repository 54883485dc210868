"""
Password-reset ledger.

One row per email holds the hash of the only live reset token for that
address. Requesting a new reset overwrites the row (the previous token stops
matching); a successful reset deletes it; a row older than the configured
lifetime is rejected but left in place until the next request or purge.
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional
from datetime import datetime, timedelta
import hashlib
import hmac
import secrets

from money_tracker.config import get_settings
from money_tracker.db.core import PasswordResetDB
from money_tracker.crud.crud_user import read_db_user, set_user_password
from money_tracker.logging_config import get_logger

logger = get_logger(__name__)

# token_urlsafe(48) yields 64 URL-safe characters
RESET_TOKEN_BYTES = 48


class UnknownEmailError(Exception):
    pass


class InvalidTokenError(Exception):
    pass


class TokenExpiredError(Exception):
    pass


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def reset_token_lifetime() -> timedelta:
    return timedelta(minutes=get_settings().password_reset_ttl_minutes)


def request_password_reset(db: Session, email: str, now: Optional[datetime] = None) -> str:
    """Issue a new reset token for `email`, superseding any earlier one. Returns the plain token."""

    now = now or datetime.utcnow()
    user = read_db_user(db, email=email)
    if not user:
        raise UnknownEmailError("The selected email is invalid.")

    token = secrets.token_urlsafe(RESET_TOKEN_BYTES)
    token_hash = hash_reset_token(token)
    user_id, email = user.id, user.email

    entry = db.get(PasswordResetDB, email)
    if entry:
        entry.token_hash = token_hash
        entry.created_at = now
        db.commit()
    else:
        try:
            db.add(PasswordResetDB(email=email, token_hash=token_hash, created_at=now))
            db.commit()
        except IntegrityError:
            # A concurrent request inserted the row first; overwrite it
            db.rollback()
            entry = db.get(PasswordResetDB, email)
            entry.token_hash = token_hash
            entry.created_at = now
            db.commit()

    logger.info(f"Issued password reset token for user {user_id}")
    return token


def consume_password_reset(db: Session, email: str, token: str, new_password: str,
                           now: Optional[datetime] = None) -> None:
    """Check `token` against the ledger and, if live, set the new password and burn the entry."""

    now = now or datetime.utcnow()
    email = email.strip().lower()

    entry = db.get(PasswordResetDB, email)
    if not entry or not hmac.compare_digest(entry.token_hash, hash_reset_token(token)):
        logger.warning(f"Rejected password reset for {email}: token mismatch")
        raise InvalidTokenError("Failed to reset password. Invalid token or email.")

    if now > entry.created_at + reset_token_lifetime():
        logger.warning(f"Rejected password reset for {email}: token expired")
        raise TokenExpiredError("Token has expired. Please request a new password reset link.")

    user = read_db_user(db, email=email)
    if not user:
        raise InvalidTokenError("Failed to reset password. Invalid token or email.")

    try:
        set_user_password(db, user, new_password)
        db.delete(entry)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Password reset completed for user {user.id}")


def purge_expired_resets(db: Session, now: Optional[datetime] = None) -> int:
    """Delete ledger rows past their lifetime. Returns the number removed."""
    now = now or datetime.utcnow()
    cutoff = now - reset_token_lifetime()
    removed = db.query(PasswordResetDB).filter(PasswordResetDB.created_at < cutoff).delete()
    db.commit()
    return removed
