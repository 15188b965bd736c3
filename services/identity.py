"""
Identity providers.

Two implementations of ``IdentityProvider`` are shipped and one is chosen by
the ``IDENTITY_PROVIDER`` setting:

- ``token``: JWT bearer header or HttpOnly ``access_token`` cookie, backed by
  the users table.
- ``anonymous``: every request is unauthenticated. Used for previews and
  static renders of the public catalog where no auth backend is reachable.
"""

import logging
from datetime import timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from core.interfaces.identity import AuthenticationError, IdentityProvider
from core.security.tokens import TokenPayload, TokenService
from infrastructure.config.settings import Settings
from infrastructure.database.models.user import User

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def extract_bearer_token(request: Request) -> str | None:
    """Token from the Authorization header, falling back to the access cookie."""
    authorization = request.headers.get("authorization")
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization.split(" ", 1)[1].strip() or None
    if not token:
        token = request.cookies.get(ACCESS_COOKIE)
    return token


def token_predates_password_change(payload: TokenPayload, user: User) -> bool:
    """True for tokens issued before the user's last password change."""
    if not payload.iat or not user.password_changed_at:
        return False
    changed = user.password_changed_at
    if changed.tzinfo is None:
        changed = changed.replace(tzinfo=timezone.utc)
    # iat has one-second resolution
    return payload.iat < changed.replace(microsecond=0)


class TokenIdentityProvider(IdentityProvider):
    """JWT-backed identity."""

    name = "token"

    def __init__(self, token_service: TokenService):
        self.token_service = token_service

    async def identify(self, request: Request, db: AsyncSession) -> User | None:
        token = extract_bearer_token(request)
        if not token:
            return None

        payload = self.token_service.verify_access_token(token)
        if not payload:
            raise AuthenticationError("Invalid or expired token")

        result = await db.execute(select(User).where(User.id == payload.sub))
        user = result.scalar_one_or_none()
        if not user:
            raise AuthenticationError("User not found")

        if not user.is_active:
            raise AuthenticationError("User account is not active", status_code=403)

        if token_predates_password_change(payload, user):
            raise AuthenticationError("Token invalidated due to security event")

        return user


class AnonymousIdentityProvider(IdentityProvider):
    """Treats every request as unauthenticated."""

    name = "anonymous"

    async def identify(self, request: Request, db: AsyncSession) -> User | None:
        return None

    @property
    def supports_sign_in(self) -> bool:
        return False


def build_token_service(settings: Settings) -> TokenService:
    return TokenService(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        access_token_expire_minutes=settings.jwt_access_token_expire_minutes,
        refresh_token_expire_days=settings.jwt_refresh_token_expire_days,
    )


def build_identity_provider(settings: Settings, token_service: TokenService | None = None) -> IdentityProvider:
    """Create the provider named by ``settings.identity_provider``."""
    if settings.identity_provider == "anonymous":
        logger.warning("Anonymous identity provider selected; sign-in is disabled")
        return AnonymousIdentityProvider()
    return TokenIdentityProvider(token_service or build_token_service(settings))
