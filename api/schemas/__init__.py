"""
API request and response schemas.
"""

from .auth import (
    LocalePreferenceRequest,
    LoginRequest,
    PasswordChangeRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

__all__ = [
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
    "PasswordChangeRequest",
    "RefreshTokenRequest",
    "LocalePreferenceRequest",
]
