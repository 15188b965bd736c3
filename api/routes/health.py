"""Health check endpoints."""

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_redis
from infrastructure.config import get_settings
from infrastructure.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


async def _database_ok(db: AsyncSession, timeout: float) -> bool:
    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=timeout)
    except TimeoutError:
        logger.error("Health check DB timeout")
        return False
    except SQLAlchemyError as e:
        logger.error("Health check DB error: %s", e)
        return False
    return True


async def _redis_ok(redis: Redis | None, timeout: float) -> bool:
    if redis is None:
        return False
    try:
        await asyncio.wait_for(redis.ping(), timeout=timeout)
    except (TimeoutError, RedisError, OSError) as e:
        logger.warning("Health check Redis error: %s", e)
        return False
    return True


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Health check with database connectivity."""
    connected = await _database_ok(db, timeout=5.0)
    return {
        "status": "healthy" if connected else "degraded",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected" if connected else "error: database check failed",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/redis")
async def health_redis(redis: Redis | None = Depends(get_redis)):
    """Redis connectivity (rate limiting and webhook deduplication)."""
    if not await _redis_ok(redis, timeout=3.0):
        raise HTTPException(status_code=503, detail="Redis unavailable")
    return {"status": "healthy", "service": "redis"}


@router.get("/health/ready")
async def readiness_check(
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    """Readiness probe. The database is required; Redis only degrades."""
    db_ok = await _database_ok(db, timeout=5.0)
    redis_ok = await _redis_ok(redis, timeout=2.0)
    return {
        "ready": db_ok,
        "database": "ok" if db_ok else "unavailable",
        "redis": "ok" if redis_ok else "degraded",
    }


@router.get("/health/live")
async def liveness_check():
    """Liveness probe."""
    return {"alive": True}
