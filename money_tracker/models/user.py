from pydantic import BaseModel, ConfigDict, Field, model_validator, field_validator
from typing import Optional
from datetime import datetime
from typing_extensions import Self
import re


EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def normalize_email(v: str) -> str:
    v = v.strip()
    if not re.match(EMAIL_PATTERN, v):
        raise ValueError('Invalid email format')
    return v.lower()


# ===== USER PYDANTIC MODELS =====

class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: str = Field(..., max_length=255, description="User's email address")
    password: str = Field(..., min_length=6, max_length=72, description="Password (minimum 6 characters)")
    password_confirmation: str = Field(..., description="Password confirmation")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @model_validator(mode="after")
    def check_passwords_match(self) -> Self:
        if self.password != self.password_confirmation:
            raise ValueError("Passwords do not match")
        return self


class UserLogin(BaseModel):
    email: str = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, description="User's password")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class UserResponse(BaseModel):
    """User data returned to client - no sensitive info"""
    id: int
    name: str
    email: str
    currency_symbol: str
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse


class UserProfileUpdate(BaseModel):
    """Profile form posts `fullName`; both spellings are accepted."""
    full_name: str = Field(..., min_length=1, max_length=255, alias="fullName")
    email: str = Field(..., max_length=255)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class CurrencyUpdate(BaseModel):
    currency_symbol: str = Field(..., min_length=1, max_length=10)

    @field_validator('currency_symbol')
    @classmethod
    def validate_currency_symbol(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Currency symbol is required')
        return v


class CurrencyResponse(BaseModel):
    message: str
    currency_symbol: str


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=8, max_length=72, description="New password (minimum 8 characters)")
    new_password_confirmation: str = Field(..., description="Confirm new password")

    @model_validator(mode="after")
    def check_passwords_match(self) -> Self:
        if self.new_password != self.new_password_confirmation:
            raise ValueError("New passwords do not match")
        return self


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class ResetPasswordRequest(BaseModel):
    email: str
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=72, description="New password (minimum 8 characters)")
    password_confirmation: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @model_validator(mode="after")
    def check_passwords_match(self) -> Self:
        if self.password != self.password_confirmation:
            raise ValueError("Passwords do not match")
        return self


class ExternalLogin(BaseModel):
    """Identity asserted by the external provider widget."""
    email: str
    name: Optional[str] = Field(None, max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class MessageResponse(BaseModel):
    message: str
