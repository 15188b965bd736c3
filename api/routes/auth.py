"""
Authentication API routes.
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user, get_identity_provider, get_token_service
from api.middleware.rate_limit import RATE_LIMITS, limiter
from api.schemas.auth import (
    LoginRequest,
    PasswordChangeRequest,
    RefreshTokenRequest,
    RegisterRequest,
    UserResponse,
    UserUpdateRequest,
)
from core.auth_redirect import REDIRECT_DELAY_SECONDS, resolve_return_to
from core.interfaces.identity import IdentityProvider
from core.security.password import password_hasher
from core.security.tokens import TokenService
from infrastructure.config.settings import Settings, settings
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User, UserStatus
from services.identity import ACCESS_COOKIE, REFRESH_COOKIE, token_predates_password_change

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _get_cookie_kwargs(settings_obj: Settings) -> dict:
    """Cookie attributes for auth cookies.

    Cross-site (SameSite=None; Secure) when the frontend is not on localhost,
    Lax for local development.
    """
    is_deployed = not any(h in settings_obj.frontend_url for h in ("localhost", "127.0.0.1", "0.0.0.0"))
    use_cross_site = settings_obj.is_production or is_deployed
    kwargs = dict(
        httponly=True,
        secure=use_cross_site,
        samesite="none" if use_cross_site else "lax",
        path="/",
    )
    if settings_obj.cookie_domain:
        kwargs["domain"] = settings_obj.cookie_domain
    return kwargs


def _token_response(
    token_service: TokenService,
    user: User,
    redirect_to: Optional[str] = None,
) -> JSONResponse:
    """Tokens in the body and as HttpOnly cookies."""
    access_token, refresh_token = token_service.create_token_pair(
        user_id=user.id,
        email=user.email,
        role=user.role,
    )
    response = JSONResponse(
        content={
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expires_in": token_service.access_token_lifetime_seconds,
            "redirect_to": redirect_to,
            "redirect_delay_ms": int(REDIRECT_DELAY_SECONDS * 1000) if redirect_to else None,
        }
    )
    kwargs = _get_cookie_kwargs(settings)
    response.set_cookie(
        ACCESS_COOKIE, access_token, max_age=token_service.access_token_lifetime_seconds, **kwargs
    )
    response.set_cookie(
        REFRESH_COOKIE, refresh_token, max_age=settings.jwt_refresh_token_expire_days * 86400, **kwargs
    )
    return response


def _require_sign_in(identity: IdentityProvider) -> None:
    if not identity.supports_sign_in:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sign-in is not available",
        )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["register"])
async def register(
    request: Request,
    register_data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> User:
    """
    Register a new user account on the free plan.
    """
    _require_sign_in(identity)

    email = register_data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )

    user = User(
        email=email,
        name=register_data.name,
        password_hash=password_hasher.hash(register_data.password),
        language=register_data.language,
        status=UserStatus.ACTIVE.value,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("Registered user %s", user.id)
    return user


@router.post("/login")
@limiter.limit(RATE_LIMITS["login"])
async def login(
    request: Request,
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
    token_service: TokenService = Depends(get_token_service),
) -> JSONResponse:
    """
    Authenticate and return tokens plus the page to continue to.

    ``redirect_to`` honours a same-site ``return_to`` path and otherwise
    points at the dashboard in the requested language.
    """
    _require_sign_in(identity)

    result = await db.execute(select(User).where(User.email == login_data.email.lower()))
    user = result.scalar_one_or_none()

    # Always run bcrypt so response time does not reveal whether the account exists
    password_ok = password_hasher.verify(login_data.password, user.password_hash if user else None)
    if not user or not password_ok:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if user.status == UserStatus.SUSPENDED.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account has been suspended",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    user.last_login = datetime.now(timezone.utc)
    user.login_count += 1
    await db.commit()

    redirect_to = resolve_return_to(login_data.return_to, login_data.lang or user.language)
    logger.info("User %s signed in", user.id)
    return _token_response(token_service, user, redirect_to)


@router.post("/refresh")
@limiter.limit(RATE_LIMITS["refresh"])
async def refresh_token(
    request: Request,
    body: Optional[RefreshTokenRequest] = Body(None),
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> JSONResponse:
    """
    Issue a new token pair from a refresh token (cookie first, then body).
    """
    refresh_tok = request.cookies.get(REFRESH_COOKIE)
    if not refresh_tok and body and body.refresh_token:
        refresh_tok = body.refresh_token

    if not refresh_tok:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token required",
        )

    payload = token_service.verify_refresh_token(refresh_tok)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    result = await db.execute(select(User).where(User.id == payload.sub))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    if token_predates_password_change(payload, user):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token invalidated due to password change. Please log in again.",
        )

    return _token_response(token_service, user)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(request: Request) -> JSONResponse:
    """
    Clear the auth cookies.

    Tokens are stateless; API clients discard their copy. A password change
    revokes every token issued before it.
    """
    response = JSONResponse(content={"message": "Logged out successfully"})
    kwargs = _get_cookie_kwargs(settings)
    response.delete_cookie(ACCESS_COOKIE, **kwargs)
    response.delete_cookie(REFRESH_COOKIE, **kwargs)
    return response


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_me(
    update_data: UserUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> User:
    if update_data.name is not None:
        current_user.name = update_data.name
    if update_data.language is not None:
        current_user.language = update_data.language
    await db.commit()
    await db.refresh(current_user)
    return current_user


@router.post("/password/change", status_code=status.HTTP_200_OK)
@limiter.limit("5/minute")
async def change_password(
    request: Request,
    body: PasswordChangeRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Change password for the authenticated user; earlier tokens stop working.
    """
    if not password_hasher.verify(body.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    current_user.password_hash = password_hasher.hash(body.new_password)
    current_user.password_changed_at = datetime.now(timezone.utc)
    await db.commit()

    logger.info("Password changed for user %s", current_user.id)
    return {"message": "Password has been changed successfully"}
