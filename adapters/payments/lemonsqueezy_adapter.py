"""
LemonSqueezy billing adapter for subscription management.

Builds hosted checkout URLs, cancels subscriptions through the REST API,
and verifies and normalizes webhook notifications.
"""

import hashlib
import hmac
import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from core.interfaces.payments import PaymentEvent, PaymentGateway
from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


class LemonSqueezyError(Exception):
    """Base exception for LemonSqueezy adapter errors."""

    pass


class LemonSqueezyAPIError(LemonSqueezyError):
    """Raised when LemonSqueezy API returns an error."""

    pass


class LemonSqueezyWebhookError(LemonSqueezyError):
    """Raised when webhook verification or processing fails."""

    pass


class LemonSqueezyAuthError(LemonSqueezyError):
    """Raised when API authentication is not configured."""

    pass


def _cents_to_amount(value: Any) -> float | None:
    try:
        return round(int(value) / 100, 2)
    except (TypeError, ValueError):
        return None


class LemonSqueezyAdapter(PaymentGateway):
    """LemonSqueezy implementation of the payment gateway."""

    API_BASE_URL = "https://api.lemonsqueezy.com/v1"
    CHECKOUT_BASE_URL = "https://{store_slug}.lemonsqueezy.com/checkout/buy/{variant_id}"

    def __init__(
        self,
        api_key: str | None = None,
        store_slug: str | None = None,
        webhook_secret: str | None = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.store_slug = store_slug
        self.webhook_secret = webhook_secret
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.store_slug)

    def _get_headers(self) -> dict[str, str]:
        if not self.api_key:
            raise LemonSqueezyAuthError(
                "LemonSqueezy API key not configured. Set LEMONSQUEEZY_API_KEY."
            )
        return {
            "Accept": "application/vnd.api+json",
            "Content-Type": "application/vnd.api+json",
            "Authorization": f"Bearer {self.api_key}",
        }

    async def _make_request(self, method: str, endpoint: str) -> dict[str, Any]:
        """Call the LemonSqueezy API and return the decoded JSON body."""
        url = f"{self.API_BASE_URL}/{endpoint}"
        headers = self._get_headers()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = str(e)
            try:
                errors = e.response.json().get("errors", [])
                if errors and isinstance(errors[0], dict):
                    detail = errors[0].get("detail", detail)
            except ValueError:
                pass
            logger.error("LemonSqueezy API error on %s %s: %s", method, endpoint, detail)
            raise LemonSqueezyAPIError(f"API request failed: {detail}") from e
        except httpx.RequestError as e:
            logger.error("LemonSqueezy request error on %s %s: %s", method, endpoint, e)
            raise LemonSqueezyAPIError(f"Request failed: {e}") from e

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def get_checkout_url(self, variant_id: str, email: str, user_id: str, redirect_url: str) -> str:
        """Build the hosted checkout URL, passing the user id through custom data."""
        if not self.store_slug:
            raise LemonSqueezyAuthError("LemonSqueezy store is not configured")

        base_url = self.CHECKOUT_BASE_URL.format(store_slug=self.store_slug, variant_id=variant_id)
        params = urlencode({
            "checkout[email]": email,
            "checkout[custom][user_id]": str(user_id),
            "checkout[redirect_url]": redirect_url,
        })
        return f"{base_url}?{params}"

    async def cancel_subscription(self, subscription_id: str) -> bool:
        """Cancel a subscription; it stays active until the end of the period."""
        logger.info("Cancelling subscription %s", subscription_id)
        # LemonSqueezy uses DELETE to cancel subscriptions
        await self._make_request("DELETE", f"subscriptions/{subscription_id}")
        return True

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify the X-Signature header (hex HMAC-SHA256 of the raw body)."""
        if not self.webhook_secret:
            raise LemonSqueezyWebhookError(
                "Webhook secret not configured. Set LEMONSQUEEZY_WEBHOOK_SECRET."
            )
        expected = hmac.new(
            key=self.webhook_secret.encode("utf-8"),
            msg=payload,
            digestmod=hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature or "")

    def parse_webhook_event(self, payload: dict[str, Any]) -> PaymentEvent:
        """Normalize a webhook payload."""
        if not isinstance(payload, dict):
            raise LemonSqueezyWebhookError("Webhook payload must be a JSON object")

        meta = payload.get("meta") or {}
        event_name = meta.get("event_name") or ""
        if not event_name:
            raise LemonSqueezyWebhookError("Webhook payload has no event name")

        data = payload.get("data") or {}
        attributes = data.get("attributes") or {}
        custom = meta.get("custom_data") or {}

        is_subscription_object = data.get("type") == "subscriptions"
        subscription_id = data.get("id") if is_subscription_object else attributes.get("subscription_id")

        return PaymentEvent(
            event_id=meta.get("event_id") or payload.get("id"),
            event_name=event_name,
            user_id=custom.get("user_id"),
            subscription_id=str(subscription_id) if subscription_id is not None else None,
            customer_id=str(attributes["customer_id"]) if attributes.get("customer_id") is not None else None,
            variant_id=str(attributes["variant_id"]) if attributes.get("variant_id") is not None else None,
            status=attributes.get("status"),
            renews_at=attributes.get("renews_at"),
            ends_at=attributes.get("ends_at"),
            amount=_cents_to_amount(attributes.get("total")),
            currency=attributes.get("currency"),
            raw=payload,
        )


def create_lemonsqueezy_adapter() -> LemonSqueezyAdapter:
    """Create an adapter from application settings."""
    return LemonSqueezyAdapter(
        api_key=settings.lemonsqueezy_api_key,
        store_slug=settings.lemonsqueezy_store_slug or settings.lemonsqueezy_store_id,
        webhook_secret=settings.lemonsqueezy_webhook_secret,
    )


payment_gateway = create_lemonsqueezy_adapter()
