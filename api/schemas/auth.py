"""
Authentication request and response schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from core.locale import SUPPORTED_LOCALES


def _check_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not any(c.isupper() for c in v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one digit")
    return v


def _check_language(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in SUPPORTED_LOCALES:
        raise ValueError(f"Language must be one of: {', '.join(SUPPORTED_LOCALES)}")
    return v


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)
    return_to: Optional[str] = Field(None, max_length=2048)
    lang: str = Field(default="en", max_length=10)


class RegisterRequest(BaseModel):
    """Registration request schema."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    language: str = Field(default="en", max_length=10)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _check_password_strength(v)

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        return _check_language(v)


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until access token expires
    redirect_to: Optional[str] = None
    redirect_delay_ms: Optional[int] = None


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema; the cookie is used when omitted."""

    refresh_token: Optional[str] = None


class UserResponse(BaseModel):
    """User response schema."""

    id: str
    email: str
    name: str
    role: str
    email_verified: bool
    subscription_tier: str
    subscription_plan: str
    subscription_status: str
    subscription_expires: Optional[datetime] = None
    language: str
    created_at: datetime
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserUpdateRequest(BaseModel):
    """User update request schema."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    language: Optional[str] = Field(None, max_length=10)

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: Optional[str]) -> Optional[str]:
        return _check_language(v)


class PasswordChangeRequest(BaseModel):
    """Password change request schema."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=100)

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _check_password_strength(v)


class LocalePreferenceRequest(BaseModel):
    """Stored UI language preference."""

    locale: str = Field(..., max_length=10)

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        return _check_language(v.strip().lower())


class LocalePreferenceResponse(BaseModel):
    locale: str
    direction: str
