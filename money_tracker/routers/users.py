from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from money_tracker.auth import AuthContext, get_auth_context, revoke_token
from money_tracker.crud import crud_user
from money_tracker.crud.crud_user import DuplicateEmailError, InvalidCredentialsError
from money_tracker.db.core import get_db, NotFoundError
from money_tracker.logging_config import get_logger
from money_tracker.models import user as user_models
from money_tracker.routers.common import field_error

logger = get_logger(__name__)

router = APIRouter(
    tags=["users"],
)


@router.get("/profile", response_model=user_models.UserResponse)
def read_profile(auth: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    """
    Retrieve the signed-in user.
    """
    db_user = crud_user.read_db_user(db, user_id=auth.user_id)
    if db_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return db_user


@router.post("/logout", response_model=user_models.MessageResponse)
def logout(auth: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    revoke_token(db, auth)
    return {"message": "Successfully logged out"}


@router.post("/user/change-password", response_model=user_models.MessageResponse)
def change_password(
    password_change: user_models.PasswordChange,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Change the signed-in user's password.
    """
    try:
        crud_user.change_user_password(db, auth.user_id, password_change)
    except InvalidCredentialsError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="❌ Current password is incorrect.")
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "✅ Password changed successfully!"}


@router.put("/user/{user_id}", response_model=user_models.UserResponse)
def update_profile(
    user_id: int,
    profile: user_models.UserProfileUpdate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Update a user's profile. Users may only edit their own.
    """
    if user_id != auth.user_id:
        logger.warning(f"User {auth.user_id} tried to update profile {user_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")

    try:
        return crud_user.update_user_profile(db, user_id, profile)
    except DuplicateEmailError as e:
        raise field_error("email", str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/dashboard/user/currency", response_model=user_models.CurrencyResponse)
def update_currency(
    currency: user_models.CurrencyUpdate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    try:
        db_user = crud_user.update_user_currency(db, auth.user_id, currency.currency_symbol)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Currency updated successfully.", "currency_symbol": db_user.currency_symbol}
