"""
Admin user and subscription management API routes.
"""

from math import ceil
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import and_, asc, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps_admin import get_current_admin_user
from api.schemas.admin import (
    AdminUserInfo,
    AuditLogListResponse,
    AuditLogResponse,
    UserActionResponse,
    UserDetailResponse,
    UserListItemResponse,
    UserListResponse,
    UserUpdateRequest,
)
from core.access import SubscriptionStatus
from infrastructure.database.connection import get_db
from infrastructure.database.models.admin import AdminAuditLog, AuditAction, AuditTargetType
from infrastructure.database.models.history import TestHistoryEntry
from infrastructure.database.models.user import User, UserRole, UserStatus
from services.admin_audit import client_ip, create_audit_log
from services.subscription import set_plan

router = APIRouter(prefix="/admin", tags=["Admin - Users"])


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def build_user_detail_response(db: AsyncSession, user: User) -> UserDetailResponse:
    history_count = (
        await db.execute(
            select(func.count()).select_from(TestHistoryEntry).where(TestHistoryEntry.user_id == user.id)
        )
    ).scalar_one()
    return UserDetailResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        status=user.status,
        subscription_plan=user.subscription_plan,
        subscription_status=user.subscription_status,
        subscription_tier=user.subscription_tier,
        subscription_expires=user.subscription_expires,
        lemonsqueezy_customer_id=user.lemonsqueezy_customer_id,
        lemonsqueezy_subscription_id=user.lemonsqueezy_subscription_id,
        email_verified=user.email_verified,
        language=user.language,
        login_count=user.login_count,
        history_count=history_count,
        last_login=user.last_login,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


async def _get_user_or_404(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


@router.get("/users", response_model=UserListResponse)
async def list_users(
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    role: Optional[str] = Query(None, pattern="^(user|admin|super_admin)$"),
    plan: Optional[str] = Query(None, pattern="^(free|monthly|yearly)$"),
    status: Optional[str] = Query(None, pattern="^(active|suspended|deleted)$"),
    sort_by: str = Query("created_at", pattern="^(created_at|email|subscription_plan|last_login)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
) -> UserListResponse:
    """
    List users with search, filters and pagination.
    """
    filters = []
    if search:
        search_pattern = f"%{_escape_like(search)}%"
        filters.append(
            or_(
                User.email.ilike(search_pattern, escape="\\"),
                User.name.ilike(search_pattern, escape="\\"),
            )
        )
    if role:
        filters.append(User.role == role)
    if plan:
        filters.append(User.subscription_plan == plan)
    if status:
        filters.append(User.status == status)

    query = select(User)
    count_query = select(func.count()).select_from(User)
    if filters:
        query = query.where(and_(*filters))
        count_query = count_query.where(and_(*filters))

    total = (await db.execute(count_query)).scalar() or 0

    sort_column = getattr(User, sort_by)
    query = query.order_by(desc(sort_column) if sort_order == "desc" else asc(sort_column))
    query = query.limit(page_size).offset((page - 1) * page_size)

    users = (await db.execute(query)).scalars().all()

    return UserListResponse(
        users=[UserListItemResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=ceil(total / page_size) if total > 0 else 0,
    )


@router.get("/users/{user_id}", response_model=UserDetailResponse)
async def get_user_detail(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> UserDetailResponse:
    user = await _get_user_or_404(db, user_id)
    return await build_user_detail_response(db, user)


@router.put("/users/{user_id}", response_model=UserActionResponse)
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    http_request: Request,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> UserActionResponse:
    """
    Update a user's role, account status or subscription.

    Only super admins assign admin roles; nobody demotes or suspends themselves.
    """
    user = await _get_user_or_404(db, user_id)

    if body.role and body.role in (UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value):
        if admin_user.role != UserRole.SUPER_ADMIN.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only super admins can assign admin roles",
            )

    if user.id == admin_user.id:
        if body.role and body.role != admin_user.role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cannot change your own role",
            )
        if body.status == UserStatus.SUSPENDED.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cannot suspend yourself",
            )

    old_values = {}
    new_values = {}

    def track(field: str, new_value) -> None:
        old_value = getattr(user, field)
        if new_value is not None and new_value != old_value:
            old_values[field] = old_value.isoformat() if hasattr(old_value, "isoformat") else old_value
            new_values[field] = new_value.isoformat() if hasattr(new_value, "isoformat") else new_value

    track("role", body.role)
    track("status", body.status)
    track("subscription_plan", body.subscription_plan)
    track("subscription_status", body.subscription_status)
    track("subscription_expires", body.subscription_expires)

    if not new_values:
        return UserActionResponse(
            success=True,
            message="No changes were made",
            user=await build_user_detail_response(db, user),
        )

    if body.role:
        user.role = body.role
    if body.status:
        user.status = body.status

    subscription_fields = {"subscription_plan", "subscription_status", "subscription_expires"}
    if subscription_fields & new_values.keys():
        set_plan(
            user,
            body.subscription_plan or user.subscription_plan,
            SubscriptionStatus(body.subscription_status or user.subscription_status),
            body.subscription_expires if body.subscription_expires is not None else user.subscription_expires,
        )

    if "role" in new_values:
        action, target_type = AuditAction.ROLE_CHANGED, AuditTargetType.USER
    elif subscription_fields & new_values.keys():
        action, target_type = AuditAction.SUBSCRIPTION_UPDATED, AuditTargetType.SUBSCRIPTION
    else:
        action, target_type = AuditAction.USER_UPDATED, AuditTargetType.USER

    create_audit_log(
        db=db,
        admin_user=admin_user,
        action=action,
        target_type=target_type,
        target_id=user.id,
        description=f"Updated user {user.email}: " + ", ".join(sorted(new_values)),
        metadata={"old_values": old_values, "new_values": new_values},
        ip_address=client_ip(http_request),
    )
    await db.commit()
    await db.refresh(user)

    return UserActionResponse(
        success=True,
        message="User updated successfully",
        user=await build_user_detail_response(db, user),
    )


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    admin_user_id: Optional[str] = Query(None),
    target_type: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    target_id: Optional[str] = Query(None),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
) -> AuditLogListResponse:
    """
    List admin audit logs with filtering and pagination.
    """
    filters = []
    if admin_user_id:
        filters.append(AdminAuditLog.admin_user_id == admin_user_id)
    if target_type:
        filters.append(AdminAuditLog.target_type == target_type)
    if action:
        filters.append(AdminAuditLog.action == action)
    if target_id:
        filters.append(AdminAuditLog.target_id == target_id)

    query = select(AdminAuditLog)
    count_query = select(func.count()).select_from(AdminAuditLog)
    if filters:
        query = query.where(and_(*filters))
        count_query = count_query.where(and_(*filters))

    total = (await db.execute(count_query)).scalar() or 0

    order = desc if sort_order == "desc" else asc
    query = query.order_by(order(AdminAuditLog.created_at)).limit(page_size).offset((page - 1) * page_size)
    logs = (await db.execute(query)).unique().scalars().all()

    return AuditLogListResponse(
        logs=[
            AuditLogResponse(
                id=log.id,
                admin_user_id=log.admin_user_id,
                admin_user=AdminUserInfo(
                    id=log.admin_user.id,
                    email=log.admin_user.email,
                    name=log.admin_user.name,
                ) if log.admin_user else None,
                action=log.action,
                target_type=log.target_type,
                target_id=log.target_id,
                details=log.details,
                ip_address=log.ip_address,
                created_at=log.created_at,
            )
            for log in logs
        ],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=ceil(total / page_size) if total > 0 else 0,
    )
