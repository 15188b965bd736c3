"""
Pytest configuration and shared fixtures for backend tests.
"""

import os
import sys
from pathlib import Path

# Settings are read at import time, so the test environment goes first
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["IDENTITY_PROVIDER"] = "token"
os.environ["LEMONSQUEEZY_WEBHOOK_SECRET"] = "test_webhook_secret"
os.environ["LEMONSQUEEZY_STORE_SLUG"] = "colorstest"
os.environ["LEMONSQUEEZY_VARIANT_MONTHLY"] = "111"
os.environ["LEMONSQUEEZY_VARIANT_YEARLY"] = "222"
os.environ["FRONTEND_URL"] = "http://localhost:3000"

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import hashlib
import hmac
import json
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from api.dependencies import get_redis
from core.security import PasswordHasher
from infrastructure.database.connection import get_db
from infrastructure.database.models import Base, ChemicalTest, User

# Low cost factor keeps the suite fast
password_hasher = PasswordHasher(rounds=4)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "TestPass123"
WEBHOOK_SECRET = "test_webhook_secret"


class FakeRedis:
    """Just enough of redis.asyncio.Redis for webhook deduplication and health checks."""

    def __init__(self):
        self.store: dict[str, str] = {}

    async def set(self, key, value, ex=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def ping(self):
        return True

    async def aclose(self):
        pass


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session
        await session.rollback()


async def _create_user(db_session: AsyncSession, **fields) -> User:
    values = dict(
        id=str(uuid4()),
        password_hash=password_hasher.hash(TEST_PASSWORD),
        status="active",
        email_verified=True,
    )
    values.update(fields)
    user = User(**values)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A signed-up user on the free plan."""
    return await _create_user(db_session, email="test@example.com", name="Test User")


@pytest.fixture
async def premium_user(db_session: AsyncSession) -> User:
    """A user with an active monthly subscription."""
    return await _create_user(
        db_session,
        email="premium@example.com",
        name="Premium User",
        subscription_tier="premium",
        subscription_plan="monthly",
        subscription_status="active",
        subscription_expires=datetime.now(timezone.utc) + timedelta(days=30),
        lemonsqueezy_customer_id="cust_1",
        lemonsqueezy_subscription_id="sub_1",
    )


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, email="admin@example.com", name="Admin User", role="admin")


@pytest.fixture
async def super_admin_user(db_session: AsyncSession) -> User:
    return await _create_user(
        db_session, email="super@example.com", name="Super Admin", role="super_admin"
    )


def _headers_for(user: User) -> dict:
    from main import app

    token = app.state.token_service.create_access_token(
        user_id=user.id, email=user.email, role=user.role
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Authentication headers for the free user."""
    return _headers_for(test_user)


@pytest.fixture
def premium_headers(premium_user: User) -> dict:
    return _headers_for(premium_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return _headers_for(admin_user)


@pytest.fixture
def super_admin_headers(super_admin_user: User) -> dict:
    return _headers_for(super_admin_user)


def make_test(order: int, **fields) -> ChemicalTest:
    values = dict(
        id=f"reagent-test-{order + 1}",
        method_name=f"Reagent Test {order + 1}",
        method_name_ar=f"اختبار الكاشف {order + 1}",
        description=f"Presumptive test number {order + 1}",
        description_ar=f"اختبار افتراضي رقم {order + 1}",
        prepare="Place a small sample on a spot plate and add one drop of reagent.",
        prepare_ar="ضع عينة صغيرة على طبق واضف قطرة من الكاشف.",
        test_type="F/L",
        test_number=str(order + 1),
        safety_level="medium",
        preparation_time=5,
        display_order=order,
        color_results=[
            {
                "color_result": "Purple",
                "color_result_ar": "بنفسجي",
                "possible_substance": f"Substance {order + 1}",
                "possible_substance_ar": f"مادة {order + 1}",
                "hex_code": "#800080",
                "confidence_level": "high",
            }
        ],
    )
    values.update(fields)
    return ChemicalTest(**values)


@pytest.fixture
async def catalog(db_session: AsyncSession) -> list[ChemicalTest]:
    """Eight tests in display order 0..7."""
    tests = [make_test(i) for i in range(8)]
    tests[0].method_name = "Marquis Test"
    tests[0].method_name_ar = "اختبار ماركيز"
    tests[0].id = "marquis-test-1"
    tests[0].color_results = [
        {
            "color_result": "Purple to black",
            "color_result_ar": "بنفسجي إلى أسود",
            "possible_substance": "MDMA",
            "possible_substance_ar": "إم دي إم إيه",
            "hex_code": "#4B0082",
            "confidence_level": "high",
        }
    ]
    tests[7].test_type = "L"
    db_session.add_all(tests)
    await db_session.commit()
    return tests


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
async def async_client(db_session: AsyncSession, fake_redis: FakeRedis) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here so the environment above is in place first
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis

    # Reset rate limiter state between tests to prevent cross-test 429s
    app.state.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def sign_webhook(payload: dict, secret: str = WEBHOOK_SECRET) -> tuple[bytes, str]:
    """Serialized body and its X-Signature value."""
    body = json.dumps(payload).encode()
    signature = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return body, signature


@pytest.fixture
def subscription_created_payload(test_user: User) -> dict:
    """A subscription_created event for the free user on the monthly plan."""
    return {
        "meta": {
            "event_name": "subscription_created",
            "event_id": "evt_created_1",
            "custom_data": {"user_id": test_user.id},
        },
        "data": {
            "type": "subscriptions",
            "id": "sub_100",
            "attributes": {
                "store_id": 12345,
                "customer_id": 555,
                "variant_id": 111,
                "status": "active",
                "renews_at": "2030-02-01T00:00:00.000000Z",
                "ends_at": None,
            },
        },
    }


@pytest.fixture
def webhook_signer():
    return sign_webhook


@pytest.fixture
def test_factory():
    return make_test
