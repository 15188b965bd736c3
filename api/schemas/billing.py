"""
Billing and subscription request/response schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PlanInfo(BaseModel):
    """A subscription plan rendered in the request language."""

    id: str = Field(..., description="Plan ID (free, monthly, yearly)")
    name: str = Field(..., description="Display name of the plan")
    description: str
    price: float = Field(..., description="Price per billing period")
    currency: str = Field("SAR", description="ISO currency code")
    duration: str = Field(..., description="Billing period (monthly, yearly)")
    tier: str = Field(..., description="Entitlement tier (free, premium)")
    test_limit: int = Field(..., description="Tests per month (-1 for unlimited)")
    is_popular: bool = False
    features: list[str]


class PlansResponse(BaseModel):
    plans: list[PlanInfo]


class SubscriptionInfo(BaseModel):
    """Current subscription status for a user."""

    plan: str = Field(..., description="Current plan id")
    tier: str = Field(..., description="Entitlement tier")
    status: str = Field(..., description="Subscription status (none, active, cancelled, expired)")
    is_premium: bool = Field(..., description="Whether premium tests are unlocked")
    expires_at: datetime | None = None
    subscription_id: str | None = None
    can_cancel: bool


class CheckoutRequest(BaseModel):
    """Request to create a checkout session."""

    plan: str = Field(..., description="Plan ID (monthly, yearly)")
    lang: str = Field("en", max_length=10)

    model_config = {"json_schema_extra": {"example": {"plan": "monthly", "lang": "ar"}}}


class CheckoutResponse(BaseModel):
    checkout_url: str = Field(..., description="URL to the hosted checkout page")


class SubscriptionCancelResponse(BaseModel):
    """Response after cancelling subscription."""

    success: bool
    message: str


class PaymentResponse(BaseModel):
    id: str
    event_name: str
    plan: str
    amount: float | None = None
    currency: str
    status: str
    paid_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentListResponse(BaseModel):
    payments: list[PaymentResponse]
    total: int
