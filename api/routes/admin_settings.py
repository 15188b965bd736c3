"""
Admin access settings and dashboard routes.
"""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps_admin import get_current_admin_user
from api.schemas.admin import (
    AccessSettingsData,
    AccessSettingsResponse,
    DashboardStatsResponse,
    RecentPayment,
    SubscriptionStats,
    UserStats,
)
from core.access import AccessSettings, SubscriptionStatus
from infrastructure.database.connection import get_db
from infrastructure.database.models.admin import AuditAction, AuditTargetType
from infrastructure.database.models.catalog import ChemicalTest
from infrastructure.database.models.history import PaymentRecord, TestHistoryEntry
from infrastructure.database.models.user import SubscriptionTier, User, UserRole
from services.access_settings import load_access_settings, save_access_settings
from services.admin_audit import client_ip, create_audit_log

router = APIRouter(prefix="/admin", tags=["Admin - Settings"])


@router.get("/access-settings", response_model=AccessSettingsResponse)
async def get_access_settings(
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> dict:
    return (await load_access_settings(db)).to_dict()


@router.put("/access-settings", response_model=AccessSettingsResponse)
async def update_access_settings(
    body: AccessSettingsData,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> dict:
    """
    Replace the access settings. Takes effect on the next catalog request.
    """
    old = await load_access_settings(db)
    new = AccessSettings.from_mapping(body.model_dump())

    create_audit_log(
        db=db,
        admin_user=admin_user,
        action=AuditAction.ACCESS_SETTINGS_UPDATED,
        target_type=AuditTargetType.ACCESS_SETTINGS,
        target_id="1",
        description="Updated access settings",
        metadata={"old_value": old.to_dict(), "new_value": new.to_dict()},
        ip_address=client_ip(request),
    )
    saved = await save_access_settings(db, new, updated_by=admin_user.email)
    return saved.to_dict()


async def _count(db: AsyncSession, model, *criteria) -> int:
    query = select(func.count()).select_from(model)
    if criteria:
        query = query.where(*criteria)
    return (await db.execute(query)).scalar_one()


@router.get("/dashboard", response_model=DashboardStatsResponse)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> DashboardStatsResponse:
    month_ago = datetime.now(timezone.utc) - timedelta(days=30)

    recent = await db.execute(
        select(PaymentRecord).order_by(PaymentRecord.created_at.desc()).limit(10)
    )

    return DashboardStatsResponse(
        users=UserStats(
            total_users=await _count(db, User),
            new_users_this_month=await _count(db, User, User.created_at >= month_ago),
            admins=await _count(db, User, User.role.in_([UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value])),
        ),
        subscriptions=SubscriptionStats(
            free_plan=await _count(db, User, User.subscription_plan == "free"),
            monthly_plan=await _count(db, User, User.subscription_plan == "monthly"),
            yearly_plan=await _count(db, User, User.subscription_plan == "yearly"),
            active_subscriptions=await _count(
                db,
                User,
                User.subscription_tier == SubscriptionTier.PREMIUM.value,
                User.subscription_status == SubscriptionStatus.ACTIVE.value,
            ),
            cancelled_subscriptions=await _count(
                db, User, User.subscription_status == SubscriptionStatus.CANCELLED.value
            ),
        ),
        total_tests=await _count(db, ChemicalTest),
        total_history_entries=await _count(db, TestHistoryEntry),
        recent_payments=[RecentPayment.model_validate(p) for p in recent.scalars().all()],
    )
