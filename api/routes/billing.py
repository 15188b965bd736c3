"""
Billing and subscription API routes.
"""

import json
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.payments.lemonsqueezy_adapter import LemonSqueezyError
from api.dependencies import get_current_user, get_payment_gateway, get_redis
from api.middleware.rate_limit import RATE_LIMITS, limiter
from api.schemas.billing import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentListResponse,
    PaymentResponse,
    PlanInfo,
    PlansResponse,
    SubscriptionCancelResponse,
    SubscriptionInfo,
)
from core.access import SubscriptionStatus, is_entitled
from core.i18n import pick
from core.interfaces.payments import PaymentGateway
from core.locale import coerce_locale, localized_path
from core.plans import PAID_PLANS, PLANS, plan_tier
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models.history import PaymentRecord
from infrastructure.database.models.user import User
from services.subscription import (
    apply_payment_event,
    subscription_state_for,
    subscription_status_for,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])

WEBHOOK_DEDUP_TTL_SECONDS = 86400


@router.get("/plans", response_model=PlansResponse)
async def get_plans(lang: str = Query("en", max_length=10)) -> PlansResponse:
    """All plans in the requested language."""
    lang = coerce_locale(lang).value
    return PlansResponse(
        plans=[
            PlanInfo(
                id=plan_id,
                name=pick(lang, plan["name"], plan["name_ar"]),
                description=pick(lang, plan["description"], plan["description_ar"]),
                price=plan["price"],
                currency=plan["currency"],
                duration=plan["duration"],
                tier=plan["tier"],
                test_limit=plan["test_limit"],
                is_popular=plan["is_popular"],
                features=plan["features_ar"] if lang == "ar" else plan["features"],
            )
            for plan_id, plan in PLANS.items()
        ]
    )


@router.get("/subscription", response_model=SubscriptionInfo)
async def get_subscription(
    current_user: Annotated[User, Depends(get_current_user)],
) -> SubscriptionInfo:
    """Current subscription; an active subscription past its expiry reads as expired."""
    current_status = subscription_status_for(current_user)
    return SubscriptionInfo(
        plan=current_user.subscription_plan,
        tier=plan_tier(current_user.subscription_plan),
        status=current_status.value,
        is_premium=is_entitled(subscription_state_for(current_user)),
        expires_at=current_user.subscription_expires,
        subscription_id=current_user.lemonsqueezy_subscription_id,
        can_cancel=bool(current_user.lemonsqueezy_subscription_id)
        and current_status == SubscriptionStatus.ACTIVE,
    )


@router.post("/checkout", response_model=CheckoutResponse)
@limiter.limit("5/minute")
async def create_checkout(
    request: Request,
    body: CheckoutRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> CheckoutResponse:
    """
    Hosted checkout URL for a paid plan.
    """
    if body.plan not in PAID_PLANS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid plan. Must be one of: {', '.join(PAID_PLANS)}",
        )

    variant_id = settings.lemonsqueezy_variants.get(body.plan)
    if not variant_id:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment system not configured",
        )

    redirect_url = settings.frontend_url.rstrip("/") + localized_path(
        coerce_locale(body.lang), "/subscription/success"
    )
    try:
        checkout_url = gateway.get_checkout_url(
            variant_id=variant_id,
            email=current_user.email,
            user_id=current_user.id,
            redirect_url=redirect_url,
        )
    except LemonSqueezyError as e:
        logger.error("Checkout unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment system not configured",
        )

    logger.info("Created checkout for user %s, plan=%s", current_user.id, body.plan)
    return CheckoutResponse(checkout_url=checkout_url)


@router.post("/cancel", response_model=SubscriptionCancelResponse)
@limiter.limit("5/minute")
async def cancel_subscription(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> SubscriptionCancelResponse:
    """
    Cancel at the end of the billing period. Access continues until expiry.
    """
    if not current_user.lemonsqueezy_subscription_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active subscription to cancel",
        )

    if subscription_status_for(current_user) != SubscriptionStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Subscription is already cancelled or expired",
        )

    try:
        await gateway.cancel_subscription(current_user.lemonsqueezy_subscription_id)
    except LemonSqueezyError as e:
        logger.error("Cancel failed for user %s: %s", current_user.id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to cancel subscription. Please try again or contact support.",
        )

    current_user.subscription_status = SubscriptionStatus.CANCELLED.value
    await db.commit()

    logger.info("Subscription cancelled for user %s", current_user.id)
    return SubscriptionCancelResponse(
        success=True,
        message="Subscription will be cancelled at the end of the billing period.",
    )


@router.get("/payments", response_model=PaymentListResponse)
async def list_payments(
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
) -> PaymentListResponse:
    result = await db.execute(
        select(PaymentRecord)
        .where(PaymentRecord.user_id == current_user.id)
        .order_by(PaymentRecord.created_at.desc())
        .limit(limit)
    )
    payments = result.scalars().all()
    total = (
        await db.execute(
            select(func.count()).select_from(PaymentRecord).where(PaymentRecord.user_id == current_user.id)
        )
    ).scalar_one()
    return PaymentListResponse(
        payments=[PaymentResponse.model_validate(p) for p in payments],
        total=total,
    )


def _is_uuid(value) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


async def _already_processed(redis: Redis | None, event_id: str) -> bool:
    """Mark *event_id* as seen; True if it was seen before.

    Without a reachable Redis every event is processed.
    """
    if redis is None:
        return False
    try:
        first_time = await redis.set(
            f"webhook:processed:{event_id}", "1", ex=WEBHOOK_DEDUP_TTL_SECONDS, nx=True
        )
    except RedisError as e:
        logger.warning("Webhook idempotency check unavailable (Redis error): %s", e)
        return False
    return not first_time


async def _release_event(redis: Redis | None, event_id: str) -> None:
    """Forget *event_id* so the provider's retry is processed."""
    if redis is None:
        return
    try:
        await redis.delete(f"webhook:processed:{event_id}")
    except RedisError as e:
        logger.error("Could not release webhook event %s for retry: %s", event_id, e)


@router.post("/webhook")
@limiter.limit(RATE_LIMITS["webhook"])
async def handle_webhook(
    request: Request,
    x_signature: Annotated[str | None, Header(alias="X-Signature")] = None,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    redis: Redis | None = Depends(get_redis),
) -> dict:
    """
    Handle payment provider webhook events.

    - subscription_created / updated / resumed: plan and status from the payload
    - subscription_cancelled: access continues until the period ends
    - subscription_expired: back to the free plan
    - subscription_payment_*, order_created: payment history
    """
    body = await request.body()

    if not settings.lemonsqueezy_webhook_secret:
        logger.error("Webhook rejected: LEMONSQUEEZY_WEBHOOK_SECRET not configured")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Webhook verification not configured")

    if not x_signature:
        logger.warning("Webhook received without signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing webhook signature")

    if not gateway.verify_webhook_signature(body, x_signature):
        logger.error("Invalid webhook signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature")

    try:
        payload = json.loads(body)
        event = gateway.parse_webhook_event(payload)
    except (ValueError, LemonSqueezyError) as e:
        logger.error("Invalid webhook payload: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook payload")

    if event.event_id and await _already_processed(redis, event.event_id):
        logger.info("Duplicate webhook event %s, skipping", event.event_id)
        return {"status": "ok", "message": "already processed"}

    try:
        user = None
        if event.user_id and _is_uuid(event.user_id):
            user = await db.get(User, str(event.user_id))
        if user is None and event.customer_id:
            result = await db.execute(select(User).where(User.lemonsqueezy_customer_id == event.customer_id))
            user = result.scalar_one_or_none()

        if user is None:
            # Acknowledge so the provider stops retrying
            logger.warning("Webhook %s for unknown user (user_id=%s)", event.event_name, event.user_id)
            return {"status": "ok", "message": "user not found"}

        await apply_payment_event(db, user, event, settings.lemonsqueezy_variants)
        await db.commit()
    except Exception:
        # Event id is only kept once the change is committed
        logger.error("Webhook %s (%s) failed; released for retry", event.event_name, event.event_id)
        await db.rollback()
        if event.event_id:
            await _release_event(redis, event.event_id)
        raise

    return {"status": "ok"}
