"""
Subscription state for users.

Derives the access-gate view of a user's subscription and applies
payment-provider events to the user row.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from core.access import PlanTier, SubscriptionStatus, UserSubscriptionState
from core.interfaces.payments import PaymentEvent
from core.plans import PLANS, plan_tier
from infrastructure.database.models.history import PaymentRecord
from infrastructure.database.models.user import SubscriptionTier, User

logger = logging.getLogger(__name__)

# Provider subscription status -> our status
PROVIDER_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "on_trial": SubscriptionStatus.ACTIVE,
    "past_due": SubscriptionStatus.ACTIVE,
    "paused": SubscriptionStatus.CANCELLED,
    "cancelled": SubscriptionStatus.CANCELLED,
    "unpaid": SubscriptionStatus.EXPIRED,
    "expired": SubscriptionStatus.EXPIRED,
}

SUBSCRIPTION_EVENTS = {
    "subscription_created",
    "subscription_updated",
    "subscription_cancelled",
    "subscription_expired",
    "subscription_resumed",
}
PAYMENT_EVENTS = {
    "subscription_payment_success",
    "subscription_payment_failed",
    "subscription_payment_refunded",
    "order_created",
}


def subscription_status_for(user: User | None) -> SubscriptionStatus:
    """Current status; an active subscription past its expiry reads as expired."""
    if user is None:
        return SubscriptionStatus.NONE
    try:
        status = SubscriptionStatus(user.subscription_status or "none")
    except ValueError:
        logger.warning("Unknown subscription status %r for user %s", user.subscription_status, user.id)
        return SubscriptionStatus.NONE

    if status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED) and user.subscription_expired:
        return SubscriptionStatus.EXPIRED
    return status


def subscription_state_for(user: User | None) -> UserSubscriptionState:
    """Access-gate view of *user* (anonymous when None)."""
    if user is None:
        return UserSubscriptionState.anonymous()
    tier = PlanTier.PREMIUM if plan_tier(user.subscription_plan) == PlanTier.PREMIUM else PlanTier.FREE
    return UserSubscriptionState(status=subscription_status_for(user), plan=tier)


def plan_for_variant(variant_id: str | None, variants: dict[str, str]) -> str | None:
    """Map a provider variant id to a plan id using ``{plan_id: variant_id}``."""
    if not variant_id:
        return None
    for plan_id, configured in variants.items():
        if configured and str(configured) == str(variant_id):
            return plan_id
    return None


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable datetime from payment provider: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def set_plan(user: User, plan_id: str, status: SubscriptionStatus, expires: datetime | None) -> None:
    """Write plan, tier, status and expiry onto the user row."""
    if plan_id not in PLANS:
        raise ValueError(f"Unknown plan: {plan_id}")
    user.subscription_plan = plan_id
    user.subscription_tier = (
        SubscriptionTier.PREMIUM.value if plan_tier(plan_id) == "premium" else SubscriptionTier.FREE.value
    )
    user.subscription_status = status.value
    user.subscription_expires = expires


async def apply_payment_event(
    db: AsyncSession,
    user: User,
    event: PaymentEvent,
    variants: dict[str, str],
) -> None:
    """Update *user* from a webhook event. The caller commits."""
    name = event.event_name

    if name in SUBSCRIPTION_EVENTS:
        if event.customer_id and not user.lemonsqueezy_customer_id:
            user.lemonsqueezy_customer_id = event.customer_id
        if event.subscription_id:
            user.lemonsqueezy_subscription_id = event.subscription_id

        plan_id = plan_for_variant(event.variant_id, variants) or user.subscription_plan
        if name == "subscription_expired":
            status = SubscriptionStatus.EXPIRED
        elif name == "subscription_cancelled":
            status = SubscriptionStatus.CANCELLED
        elif name == "subscription_resumed":
            status = SubscriptionStatus.ACTIVE
        else:
            status = PROVIDER_STATUS_MAP.get(event.status or "active", SubscriptionStatus.ACTIVE)

        if status == SubscriptionStatus.EXPIRED:
            set_plan(user, "free", status, _parse_datetime(event.ends_at))
        elif plan_id in PLANS:
            expires = _parse_datetime(event.ends_at) or _parse_datetime(event.renews_at)
            set_plan(user, plan_id, status, expires)
        else:
            logger.warning("Webhook %s for user %s has unknown variant %s", name, user.id, event.variant_id)
            user.subscription_status = status.value

        logger.info(
            "Subscription %s for user %s: plan=%s status=%s",
            name, user.id, user.subscription_plan, user.subscription_status,
        )

    if name in PAYMENT_EVENTS:
        if name == "subscription_payment_failed":
            payment_status = "failed"
        elif name == "subscription_payment_refunded":
            payment_status = "refunded"
        else:
            payment_status = "completed"
        db.add(
            PaymentRecord(
                user_id=user.id,
                provider_reference=event.event_id or event.subscription_id,
                event_name=name,
                plan=plan_for_variant(event.variant_id, variants) or user.subscription_plan,
                amount=event.amount,
                currency=(event.currency or "SAR").upper(),
                status=payment_status,
                paid_at=datetime.now(timezone.utc) if payment_status == "completed" else None,
            )
        )
        logger.info("Recorded %s payment for user %s", payment_status, user.id)
