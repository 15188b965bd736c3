"""Payment adapters for billing and subscription management."""

from .lemonsqueezy_adapter import (
    LemonSqueezyAdapter,
    LemonSqueezyAPIError,
    LemonSqueezyAuthError,
    LemonSqueezyError,
    LemonSqueezyWebhookError,
    create_lemonsqueezy_adapter,
    payment_gateway,
)

__all__ = [
    "LemonSqueezyAdapter",
    "LemonSqueezyError",
    "LemonSqueezyAPIError",
    "LemonSqueezyWebhookError",
    "LemonSqueezyAuthError",
    "create_lemonsqueezy_adapter",
    "payment_gateway",
]
