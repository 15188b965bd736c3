"""
Admin API schemas for user, subscription and access management.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Dashboard Stats
# ============================================================================


class UserStats(BaseModel):
    total_users: int = Field(..., description="Total number of users")
    new_users_this_month: int = Field(..., description="New users in past 30 days")
    admins: int


class SubscriptionStats(BaseModel):
    free_plan: int = Field(..., description="Users on the free plan")
    monthly_plan: int
    yearly_plan: int
    active_subscriptions: int = Field(..., description="Active premium subscriptions")
    cancelled_subscriptions: int


class RecentPayment(BaseModel):
    id: str
    user_id: str
    plan: str
    amount: Optional[float] = None
    currency: str
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DashboardStatsResponse(BaseModel):
    users: UserStats
    subscriptions: SubscriptionStats
    total_tests: int
    total_history_entries: int
    recent_payments: list[RecentPayment]


# ============================================================================
# Access settings
# ============================================================================


class AccessSettingsData(BaseModel):
    free_tests_enabled: bool = True
    free_tests_count: int = Field(5, ge=0, le=1000)
    premium_required: bool = True
    global_free_access: bool = False
    premium_test_indices: list[Annotated[int, Field(ge=1)]] = Field(
        default_factory=list, description="1-based catalog positions"
    )


class AccessSettingsResponse(AccessSettingsData):
    pass


# ============================================================================
# User Management
# ============================================================================


class UserListItemResponse(BaseModel):
    id: str
    email: str
    name: str
    role: str
    status: str
    subscription_plan: str
    subscription_status: str
    email_verified: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserListResponse(BaseModel):
    users: list[UserListItemResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class UserDetailResponse(UserListItemResponse):
    subscription_tier: str
    subscription_expires: Optional[datetime] = None
    lemonsqueezy_customer_id: Optional[str] = None
    lemonsqueezy_subscription_id: Optional[str] = None
    language: str
    login_count: int
    history_count: int = 0
    updated_at: datetime


class UserUpdateRequest(BaseModel):
    role: Optional[str] = Field(None, pattern="^(user|admin|super_admin)$")
    status: Optional[str] = Field(None, pattern="^(active|suspended)$")
    subscription_plan: Optional[str] = Field(None, pattern="^(free|monthly|yearly)$")
    subscription_status: Optional[str] = Field(None, pattern="^(none|active|cancelled|expired)$")
    subscription_expires: Optional[datetime] = None


class UserActionResponse(BaseModel):
    success: bool
    message: str
    user: Optional[UserDetailResponse] = None


# ============================================================================
# Audit Logs
# ============================================================================


class AdminUserInfo(BaseModel):
    id: str
    email: str
    name: str


class AuditLogResponse(BaseModel):
    id: str
    admin_user_id: Optional[str] = None
    admin_user: Optional[AdminUserInfo] = None
    action: str
    target_type: str
    target_id: Optional[str] = None
    details: Optional[dict] = None
    ip_address: Optional[str] = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    logs: list[AuditLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
