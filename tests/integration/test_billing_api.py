"""Integration tests for billing, checkout and payment webhooks."""

import copy
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlsplit

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.payments import LemonSqueezyAPIError
from api.dependencies import get_payment_gateway, get_redis
from infrastructure.database.models.history import PaymentRecord
from infrastructure.database.models.user import User

pytestmark = pytest.mark.asyncio

WEBHOOK_URL = "/api/v1/billing/webhook"


async def _post_webhook(client: AsyncClient, signer, payload: dict, signature: str | None = None):
    body, valid_signature = signer(payload)
    headers = {"Content-Type": "application/json", "X-Signature": signature or valid_signature}
    return await client.post(WEBHOOK_URL, content=body, headers=headers)


class TestPlans:
    async def test_plans_english(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/billing/plans")
        assert response.status_code == 200
        plans = {p["id"]: p for p in response.json()["plans"]}
        assert set(plans) == {"free", "monthly", "yearly"}
        assert plans["monthly"]["price"] == 29.99
        assert plans["monthly"]["currency"] == "SAR"
        assert plans["free"]["tier"] == "free"

    async def test_plans_arabic(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/billing/plans", params={"lang": "ar"})
        plans = {p["id"]: p for p in response.json()["plans"]}
        assert plans["yearly"]["name"] == "الاشتراك السنوي المميز"


class TestSubscription:
    async def test_free_user(self, async_client: AsyncClient, auth_headers):
        response = await async_client.get("/api/v1/billing/subscription", headers=auth_headers)
        data = response.json()
        assert data["plan"] == "free"
        assert data["status"] == "none"
        assert data["is_premium"] is False
        assert data["can_cancel"] is False

    async def test_premium_user(self, async_client: AsyncClient, premium_headers):
        response = await async_client.get("/api/v1/billing/subscription", headers=premium_headers)
        data = response.json()
        assert data["tier"] == "premium"
        assert data["is_premium"] is True
        assert data["can_cancel"] is True

    async def test_lapsed_subscription(
        self, async_client: AsyncClient, premium_user: User, premium_headers, db_session: AsyncSession
    ):
        premium_user.subscription_expires = datetime.now(timezone.utc) - timedelta(days=1)
        await db_session.commit()

        response = await async_client.get("/api/v1/billing/subscription", headers=premium_headers)
        data = response.json()
        assert data["status"] == "expired"
        assert data["is_premium"] is False

    async def test_requires_auth(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/billing/subscription")
        assert response.status_code == 401


class TestCheckout:
    async def test_checkout_url(self, async_client: AsyncClient, test_user: User, auth_headers):
        response = await async_client.post(
            "/api/v1/billing/checkout", json={"plan": "yearly", "lang": "ar"}, headers=auth_headers
        )
        assert response.status_code == 200
        parts = urlsplit(response.json()["checkout_url"])
        query = parse_qs(parts.query)
        assert parts.path == "/checkout/buy/222"
        assert query["checkout[custom][user_id]"] == [test_user.id]
        assert query["checkout[redirect_url]"] == ["http://localhost:3000/ar/subscription/success"]

    async def test_free_plan_rejected(self, async_client: AsyncClient, auth_headers):
        response = await async_client.post(
            "/api/v1/billing/checkout", json={"plan": "free"}, headers=auth_headers
        )
        assert response.status_code == 400


class TestCancel:
    async def test_cancel(self, async_client: AsyncClient, premium_headers):
        from main import app

        gateway = AsyncMock()
        gateway.cancel_subscription.return_value = True
        app.dependency_overrides[get_payment_gateway] = lambda: gateway

        response = await async_client.post("/api/v1/billing/cancel", headers=premium_headers)
        assert response.status_code == 200
        gateway.cancel_subscription.assert_awaited_once_with("sub_1")

        subscription = await async_client.get("/api/v1/billing/subscription", headers=premium_headers)
        data = subscription.json()
        assert data["status"] == "cancelled"
        assert data["can_cancel"] is False
        assert data["is_premium"] is False

    async def test_cancel_gateway_failure(self, async_client: AsyncClient, premium_headers):
        from main import app

        gateway = AsyncMock()
        gateway.cancel_subscription.side_effect = LemonSqueezyAPIError("boom")
        app.dependency_overrides[get_payment_gateway] = lambda: gateway

        response = await async_client.post("/api/v1/billing/cancel", headers=premium_headers)
        assert response.status_code == 502

    async def test_cancel_without_subscription(self, async_client: AsyncClient, auth_headers):
        response = await async_client.post("/api/v1/billing/cancel", headers=auth_headers)
        assert response.status_code == 404


class TestWebhook:
    async def test_subscription_created_upgrades_user(
        self,
        async_client: AsyncClient,
        test_user: User,
        subscription_created_payload,
        webhook_signer,
        auth_headers,
    ):
        response = await _post_webhook(async_client, webhook_signer, subscription_created_payload)
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

        subscription = await async_client.get("/api/v1/billing/subscription", headers=auth_headers)
        data = subscription.json()
        assert data["plan"] == "monthly"
        assert data["status"] == "active"
        assert data["is_premium"] is True
        assert data["subscription_id"] == "sub_100"

    async def test_missing_signature(self, async_client: AsyncClient, subscription_created_payload):
        response = await async_client.post(WEBHOOK_URL, json=subscription_created_payload)
        assert response.status_code == 401

    async def test_invalid_signature(self, async_client: AsyncClient, subscription_created_payload, webhook_signer):
        response = await _post_webhook(async_client, webhook_signer, subscription_created_payload, signature="0" * 64)
        assert response.status_code == 401

    async def test_malformed_payload(self, async_client: AsyncClient, webhook_signer):
        response = await _post_webhook(async_client, webhook_signer, {"meta": {}})
        assert response.status_code == 400

    async def test_duplicate_event_is_skipped(
        self,
        async_client: AsyncClient,
        test_user: User,
        subscription_created_payload,
        webhook_signer,
        fake_redis,
    ):
        first = await _post_webhook(async_client, webhook_signer, subscription_created_payload)
        second = await _post_webhook(async_client, webhook_signer, subscription_created_payload)

        assert first.json() == {"status": "ok"}
        assert second.json()["message"] == "already processed"
        assert "webhook:processed:evt_created_1" in fake_redis.store

    async def test_failed_event_is_processed_on_retry(
        self,
        async_client: AsyncClient,
        test_user: User,
        subscription_created_payload,
        webhook_signer,
        auth_headers,
        fake_redis,
        monkeypatch,
    ):
        from api.routes import billing

        real_apply = billing.apply_payment_event
        calls = []

        async def flaky_apply(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise RuntimeError("db down")
            return await real_apply(*args, **kwargs)

        monkeypatch.setattr(billing, "apply_payment_event", flaky_apply)

        with pytest.raises(RuntimeError):
            await _post_webhook(async_client, webhook_signer, subscription_created_payload)
        assert "webhook:processed:evt_created_1" not in fake_redis.store

        retry = await _post_webhook(async_client, webhook_signer, subscription_created_payload)
        assert retry.json() == {"status": "ok"}
        assert "webhook:processed:evt_created_1" in fake_redis.store

        data = (await async_client.get("/api/v1/billing/subscription", headers=auth_headers)).json()
        assert data["plan"] == "monthly"
        assert data["is_premium"] is True

    async def test_processes_without_redis(
        self, async_client: AsyncClient, test_user: User, subscription_created_payload, webhook_signer
    ):
        from main import app

        app.dependency_overrides[get_redis] = lambda: None
        response = await _post_webhook(async_client, webhook_signer, subscription_created_payload)
        assert response.json() == {"status": "ok"}

    async def test_unknown_user_is_acknowledged(
        self, async_client: AsyncClient, subscription_created_payload, webhook_signer
    ):
        payload = copy.deepcopy(subscription_created_payload)
        payload["meta"]["custom_data"]["user_id"] = "00000000-0000-0000-0000-000000000000"
        payload["data"]["attributes"]["customer_id"] = 999999

        response = await _post_webhook(async_client, webhook_signer, payload)
        assert response.status_code == 200
        assert response.json()["message"] == "user not found"

    async def test_payment_recorded_by_customer_id(
        self,
        async_client: AsyncClient,
        premium_user: User,
        premium_headers,
        webhook_signer,
        db_session: AsyncSession,
    ):
        payload = {
            "meta": {"event_name": "subscription_payment_success", "event_id": "evt_pay_1"},
            "data": {
                "type": "subscription-invoices",
                "id": "inv_1",
                "attributes": {
                    "subscription_id": "sub_1",
                    "customer_id": "cust_1",
                    "variant_id": 111,
                    "total": 2999,
                    "currency": "SAR",
                    "status": "paid",
                },
            },
        }
        response = await _post_webhook(async_client, webhook_signer, payload)
        assert response.status_code == 200

        records = (
            await db_session.execute(select(PaymentRecord).where(PaymentRecord.user_id == premium_user.id))
        ).scalars().all()
        assert len(records) == 1
        assert records[0].amount == 29.99
        assert records[0].status == "completed"

        payments = await async_client.get("/api/v1/billing/payments", headers=premium_headers)
        assert payments.json()["total"] == 1
        assert payments.json()["payments"][0]["plan"] == "monthly"

    async def test_subscription_expired_downgrades(
        self, async_client: AsyncClient, premium_user: User, premium_headers, webhook_signer
    ):
        payload = {
            "meta": {
                "event_name": "subscription_expired",
                "event_id": "evt_exp_1",
                "custom_data": {"user_id": premium_user.id},
            },
            "data": {
                "type": "subscriptions",
                "id": "sub_1",
                "attributes": {"customer_id": "cust_1", "variant_id": 111, "status": "expired"},
            },
        }
        await _post_webhook(async_client, webhook_signer, payload)

        data = (await async_client.get("/api/v1/billing/subscription", headers=premium_headers)).json()
        assert data["plan"] == "free"
        assert data["status"] == "expired"
        assert data["is_premium"] is False
