from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import ExpiredSignatureError, JWTError, jwt
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import uuid

from money_tracker.config import get_settings
from money_tracker.db.core import get_db, UserDB, RevokedTokenDB
from money_tracker.logging_config import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, resolved once per request from the bearer token."""
    user_id: int
    jti: str
    expires_at: datetime


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(user_id: int, now: Optional[datetime] = None) -> str:
    """Issue a signed access token for the user"""
    settings = get_settings()
    now = now or datetime.utcnow()
    claims = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_ttl_minutes),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Authorization Token not found")

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = int(payload["sub"])
        jti = payload["jti"]
        expires_at = datetime.utcfromtimestamp(payload["exp"])
    except ExpiredSignatureError:
        raise _unauthorized("Token is Expired")
    except (JWTError, KeyError, TypeError, ValueError):
        raise _unauthorized("Token is Invalid")

    if db.get(RevokedTokenDB, jti) is not None:
        raise _unauthorized("Token is Invalid")

    if db.get(UserDB, user_id) is None:
        raise _unauthorized("Token is Invalid")

    return AuthContext(user_id=user_id, jti=jti, expires_at=expires_at)


def revoke_token(db: Session, context: AuthContext) -> None:
    """Blacklist the token behind `context` until it would have expired anyway"""
    if db.get(RevokedTokenDB, context.jti) is None:
        db.add(RevokedTokenDB(
            jti=context.jti,
            user_id=context.user_id,
            expires_at=context.expires_at,
            revoked_at=datetime.utcnow(),
        ))
        db.commit()
    logger.info(f"Revoked token for user {context.user_id}")


def purge_revoked_tokens(db: Session, now: Optional[datetime] = None) -> int:
    now = now or datetime.utcnow()
    removed = db.query(RevokedTokenDB).filter(RevokedTokenDB.expires_at < now).delete()
    db.commit()
    return removed
