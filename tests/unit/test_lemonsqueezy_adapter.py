"""
Unit tests for the LemonSqueezy payment adapter.

Covers checkout URL generation, webhook signature verification, payload
normalization and API error mapping.
"""

import hashlib
import hmac
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from adapters.payments.lemonsqueezy_adapter import (
    LemonSqueezyAdapter,
    LemonSqueezyAPIError,
    LemonSqueezyAuthError,
    LemonSqueezyWebhookError,
)


@pytest.fixture
def adapter():
    return LemonSqueezyAdapter(
        api_key="test_api_key_123",
        store_slug="colorstest",
        webhook_secret="test_webhook_secret",
    )


def _sign(body: bytes, secret: str = "test_webhook_secret") -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class TestCheckoutUrl:
    def test_contains_prefill_and_custom_data(self, adapter):
        url = adapter.get_checkout_url(
            variant_id="111",
            email="buyer@example.com",
            user_id="user-1",
            redirect_url="http://localhost:3000/ar/subscription/success",
        )
        parts = urlsplit(url)
        query = parse_qs(parts.query)

        assert parts.netloc == "colorstest.lemonsqueezy.com"
        assert parts.path == "/checkout/buy/111"
        assert query["checkout[email]"] == ["buyer@example.com"]
        assert query["checkout[custom][user_id]"] == ["user-1"]
        assert query["checkout[redirect_url]"] == ["http://localhost:3000/ar/subscription/success"]

    def test_requires_store(self):
        with pytest.raises(LemonSqueezyAuthError):
            LemonSqueezyAdapter(api_key="k").get_checkout_url("1", "a@b.c", "u", "/")


class TestWebhookSignature:
    def test_valid(self, adapter):
        body = b'{"meta": {"event_name": "order_created"}}'
        assert adapter.verify_webhook_signature(body, _sign(body)) is True

    def test_tampered_body(self, adapter):
        body = b'{"meta": {"event_name": "order_created"}}'
        assert adapter.verify_webhook_signature(body + b" ", _sign(body)) is False

    def test_wrong_secret(self, adapter):
        body = b"{}"
        assert adapter.verify_webhook_signature(body, _sign(body, "other")) is False

    def test_missing_secret(self):
        with pytest.raises(LemonSqueezyWebhookError):
            LemonSqueezyAdapter().verify_webhook_signature(b"{}", "abc")


class TestParseWebhookEvent:
    def test_subscription_event(self, adapter):
        event = adapter.parse_webhook_event({
            "meta": {"event_name": "subscription_created", "event_id": "evt_1", "custom_data": {"user_id": "u1"}},
            "data": {
                "type": "subscriptions",
                "id": 42,
                "attributes": {"customer_id": 7, "variant_id": 111, "status": "active", "renews_at": "2030-01-01T00:00:00Z"},
            },
        })
        assert event.event_id == "evt_1"
        assert event.event_name == "subscription_created"
        assert event.user_id == "u1"
        assert event.subscription_id == "42"
        assert event.customer_id == "7"
        assert event.variant_id == "111"
        assert event.renews_at == "2030-01-01T00:00:00Z"

    def test_invoice_event_amount(self, adapter):
        event = adapter.parse_webhook_event({
            "meta": {"event_name": "subscription_payment_success"},
            "data": {
                "type": "subscription-invoices",
                "id": "inv_1",
                "attributes": {"subscription_id": 42, "customer_id": 7, "total": 2999, "currency": "SAR"},
            },
        })
        assert event.subscription_id == "42"
        assert event.amount == 29.99
        assert event.currency == "SAR"
        assert event.user_id is None

    @pytest.mark.parametrize("payload", [[], {"meta": {}}, {"data": {}}])
    def test_invalid_payloads(self, adapter, payload):
        with pytest.raises(LemonSqueezyWebhookError):
            adapter.parse_webhook_event(payload)


class TestCancelSubscription:
    async def test_requires_api_key(self):
        with pytest.raises(LemonSqueezyAuthError):
            await LemonSqueezyAdapter(store_slug="s").cancel_subscription("1")

    async def test_sends_delete(self, adapter):
        response = MagicMock(status_code=200, content=b'{"data": {}}')
        response.json.return_value = {"data": {}}
        client = AsyncMock()
        client.request.return_value = response

        with patch("adapters.payments.lemonsqueezy_adapter.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = client
            assert await adapter.cancel_subscription("sub_1") is True

        method, url = client.request.call_args.args
        assert method == "DELETE"
        assert url.endswith("/subscriptions/sub_1")

    async def test_http_error_is_mapped(self, adapter):
        request = httpx.Request("DELETE", "https://api.lemonsqueezy.com/v1/subscriptions/x")
        error_response = httpx.Response(404, json={"errors": [{"detail": "Not found"}]}, request=request)
        response = MagicMock()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "404", request=request, response=error_response
        )
        client = AsyncMock()
        client.request.return_value = response

        with patch("adapters.payments.lemonsqueezy_adapter.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = client
            with pytest.raises(LemonSqueezyAPIError, match="Not found"):
                await adapter.cancel_subscription("x")
