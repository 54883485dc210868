from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from money_tracker.auth import create_access_token
from money_tracker.config import get_settings
from money_tracker.crud import crud_user, crud_password_reset
from money_tracker.crud.crud_user import DuplicateEmailError, InvalidCredentialsError
from money_tracker.crud.crud_password_reset import UnknownEmailError, InvalidTokenError, TokenExpiredError
from money_tracker.db.core import get_db, UserDB
from money_tracker.models import user as user_models
from money_tracker.routers.common import field_error
from money_tracker.services.mailer import Mailer, build_reset_email, get_mailer

router = APIRouter(
    tags=["auth"],
)


def token_response(user: UserDB, message: str) -> user_models.TokenResponse:
    return user_models.TokenResponse(
        message=message,
        access_token=create_access_token(user.id),
        expires_in=get_settings().jwt_ttl_minutes * 60,
        user=user_models.UserResponse.model_validate(user),
    )


@router.post("/register", response_model=user_models.TokenResponse)
def register(user: user_models.UserCreate, db: Session = Depends(get_db)):
    """
    Create an account and sign it in.
    """
    try:
        db_user = crud_user.register_user(db=db, user_data=user)
    except DuplicateEmailError as e:
        raise field_error("email", str(e))
    return token_response(db_user, "Registration successful")


@router.post("/login", response_model=user_models.TokenResponse)
def login(user_login: user_models.UserLogin, db: Session = Depends(get_db)):
    """
    Authenticate user and return a token.
    """
    try:
        db_user = crud_user.authenticate_user(db, email=user_login.email, password=user_login.password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token_response(db_user, "Login successful")


@router.post("/forgot-password", response_model=user_models.MessageResponse)
def forgot_password(
    request: user_models.ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Email a single-use password reset link.
    """
    try:
        token = crud_password_reset.request_password_reset(db, request.email)
    except UnknownEmailError as e:
        raise field_error("email", str(e))

    mailer.send(build_reset_email(request.email, token))
    return {
        "message": "✅ We’ve sent a password reset link to your email. "
                   "Please check your inbox (and spam folder)."
    }


@router.post("/reset-password", response_model=user_models.MessageResponse)
def reset_password(request: user_models.ResetPasswordRequest, db: Session = Depends(get_db)):
    """
    Set a new password using a token from the reset email.
    """
    try:
        crud_password_reset.consume_password_reset(db, request.email, request.token, request.password)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="❌ Failed to reset password. Invalid token or email.",
        )
    except TokenExpiredError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="❌ Token has expired. Please request a new password reset link.",
        )
    return {"message": "✅ Password has been reset successfully!"}


@router.post("/auth/google", response_model=user_models.TokenResponse)
def login_with_google(identity: user_models.ExternalLogin, db: Session = Depends(get_db)):
    """
    Sign in with an identity from the Google widget, creating the account on first use.
    """
    if not identity.name or not identity.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and name are required")

    db_user = crud_user.get_or_create_external_user(db, email=identity.email, name=identity.name)
    return token_response(db_user, "User authenticated successfully")


@router.post("/auth/google/login", response_model=user_models.TokenResponse)
def login_existing_google_user(identity: user_models.ExternalLogin, db: Session = Depends(get_db)):
    """
    Sign in an existing account by its Google email.
    """
    db_user = crud_user.read_db_user(db, email=identity.email)
    if db_user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No account found with this email. Please register first.",
        )
    return token_response(db_user, "Login successful")
