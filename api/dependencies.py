"""
API dependencies for identity, access and wiring.

Collaborators (identity provider, token service, payment gateway, Redis
client) are attached to ``app.state`` when the application is built and
handed to routes through these dependencies, so tests replace them with
``app.dependency_overrides`` instead of patching module globals.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from core.access import AccessSettings, UserSubscriptionState
from core.interfaces.identity import AuthenticationError, IdentityProvider
from core.interfaces.payments import PaymentGateway
from core.locale import Locale, coerce_locale
from core.security.tokens import TokenService
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User
from services.access_settings import load_access_settings
from services.subscription import subscription_state_for

logger = logging.getLogger(__name__)


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


def get_redis(request: Request) -> Redis | None:
    return request.app.state.redis


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> User | None:
    """The signed-in user, or None. Stale credentials read as anonymous."""
    try:
        return await identity.identify(request, db)
    except AuthenticationError as e:
        logger.info("Ignoring invalid credentials on public endpoint: %s", e.detail)
        return None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> User:
    """The signed-in user; 401/403 otherwise."""
    try:
        user = await identity.identify(request, db)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=e.detail,
            headers={"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None,
        )

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_subscription_state(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> UserSubscriptionState:
    return subscription_state_for(user)


async def get_access_settings(db: AsyncSession = Depends(get_db)) -> AccessSettings:
    return await load_access_settings(db)


def get_request_locale(request: Request) -> Locale:
    """Locale set by the locale middleware, else the ``lang`` query parameter."""
    state_locale = getattr(request.state, "locale", None)
    if state_locale:
        return coerce_locale(state_locale)
    return coerce_locale(request.query_params.get("lang"))
