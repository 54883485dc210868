from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional
from datetime import datetime
import secrets
import bcrypt

from money_tracker.config import get_settings
from money_tracker.db.core import UserDB, NotFoundError
from money_tracker.models.user import UserCreate, UserProfileUpdate, PasswordChange
from money_tracker.logging_config import get_logger

logger = get_logger(__name__)


class DuplicateEmailError(ValueError):
    pass


class InvalidCredentialsError(Exception):
    pass


# ===== PASSWORD HASHING UTILITIES =====

def password_bytes(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes and newer releases reject longer input
    return password.encode('utf-8')[:72]


def hash_password(password: str) -> str:
    """Hash a password with a per-password bcrypt salt"""
    return bcrypt.hashpw(password_bytes(password), bcrypt.gensalt()).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        return bcrypt.checkpw(password_bytes(plain_password), hashed_password.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


# ===== DATABASE OPERATIONS =====

def register_user(db: Session, user_data: UserCreate) -> UserDB:
    """Create a new user in the database"""

    existing_user = db.query(UserDB).filter(UserDB.email == user_data.email).first()
    if existing_user:
        raise DuplicateEmailError("The email has already been taken.")

    db_user = UserDB(
        name=user_data.name,
        email=user_data.email,
        password_hash=hash_password(user_data.password),
        currency_symbol=get_settings().default_currency_symbol,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    try:
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
    except IntegrityError:
        db.rollback()
        raise DuplicateEmailError("The email has already been taken.")

    logger.info(f"Registered user {db_user.id}")
    return db_user


def read_db_user(db: Session, user_id: Optional[int] = None, email: Optional[str] = None) -> Optional[UserDB]:
    """Read a user from the database by id or email"""

    query = db.query(UserDB)

    if user_id is not None:
        return query.filter(UserDB.id == user_id).first()
    elif email:
        return query.filter(UserDB.email == email.strip().lower()).first()
    else:
        raise ValueError("Must provide at least one identifier (user_id or email)")


def authenticate_user(db: Session, email: str, password: str) -> UserDB:
    """Authenticate a user by email and password"""

    user = read_db_user(db, email=email)
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login attempt for {email}")
        raise InvalidCredentialsError("Invalid credentials")

    user.last_login_at = datetime.utcnow()
    db.commit()
    db.refresh(user)

    return user


def change_user_password(db: Session, user_id: int, password_change: PasswordChange) -> UserDB:
    """Change a user's password after checking the current one"""

    db_user = read_db_user(db, user_id=user_id)
    if not db_user:
        raise NotFoundError(f"User with id {user_id} not found")

    if not verify_password(password_change.current_password, db_user.password_hash):
        raise InvalidCredentialsError("Current password is incorrect.")

    db_user.password_hash = hash_password(password_change.new_password)
    db_user.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(db_user)
    logger.info(f"User {user_id} changed their password")
    return db_user


def set_user_password(db: Session, db_user: UserDB, new_password: str) -> UserDB:
    """Store a new password hash without checking the old one (reset flow)"""
    db_user.password_hash = hash_password(new_password)
    db_user.updated_at = datetime.utcnow()
    return db_user


def update_user_profile(db: Session, user_id: int, profile: UserProfileUpdate) -> UserDB:
    """Update display name and email"""

    db_user = read_db_user(db, user_id=user_id)
    if not db_user:
        raise NotFoundError(f"User with id {user_id} not found")

    if profile.email != db_user.email:
        existing_email = db.query(UserDB).filter(
            UserDB.email == profile.email,
            UserDB.id != user_id
        ).first()
        if existing_email:
            raise DuplicateEmailError("The email has already been taken.")

    db_user.name = profile.full_name
    db_user.email = profile.email
    db_user.updated_at = datetime.utcnow()

    try:
        db.commit()
        db.refresh(db_user)
        return db_user
    except IntegrityError:
        db.rollback()
        raise DuplicateEmailError("The email has already been taken.")


def update_user_currency(db: Session, user_id: int, currency_symbol: str) -> UserDB:
    db_user = read_db_user(db, user_id=user_id)
    if not db_user:
        raise NotFoundError(f"User with id {user_id} not found")

    db_user.currency_symbol = currency_symbol
    db_user.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(db_user)
    return db_user


def get_or_create_external_user(db: Session, email: str, name: str) -> UserDB:
    """
    Find or create the account for an identity asserted by the external
    sign-in provider. New accounts get an unusable random password.
    """
    db_user = read_db_user(db, email=email)
    if db_user:
        return db_user

    db_user = UserDB(
        name=name.strip(),
        email=email,
        password_hash=hash_password(secrets.token_urlsafe(16)),
        currency_symbol=get_settings().default_currency_symbol,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Created user {db_user.id} from external sign-in")
    return db_user
