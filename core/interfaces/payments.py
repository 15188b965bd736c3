"""Payment gateway interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PaymentEvent:
    """Normalized subscription/payment notification from a gateway."""

    event_id: str | None
    event_name: str
    user_id: str | None
    subscription_id: str | None
    customer_id: str | None
    variant_id: str | None
    status: str | None
    renews_at: str | None = None
    ends_at: str | None = None
    amount: float | None = None
    currency: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


class PaymentGateway(ABC):
    """Abstract hosted-checkout payment provider."""

    @abstractmethod
    def get_checkout_url(self, variant_id: str, email: str, user_id: str, redirect_url: str) -> str:
        """Return a hosted checkout URL for the variant."""
        ...

    @abstractmethod
    async def cancel_subscription(self, subscription_id: str) -> bool:
        """Cancel at period end."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        ...

    @abstractmethod
    def parse_webhook_event(self, payload: dict[str, Any]) -> PaymentEvent:
        ...
