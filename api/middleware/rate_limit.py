"""
Rate limiting using slowapi.

Limits are keyed by client IP (proxy-aware) and stored in Redis when a
REDIS_URL is configured, in memory otherwise.

Rate Limits:
- Login: 5 attempts per minute
- Registration: 3 attempts per minute
- Token refresh: 30 per minute
- Payment webhook: 60 per minute
- Default: 100 requests per minute
"""

import ipaddress
import logging
import re

from starlette.requests import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

_IP_LIKE = re.compile(r"^[\d.:a-fA-F]+$")


def _is_public_ip(value: str) -> bool:
    """True for a syntactically valid, non-private, non-loopback address.

    Private addresses in forwarding headers are trivially spoofed, so they
    never select a rate-limit bucket.
    """
    if not _IP_LIKE.match(value):
        return False
    try:
        addr = ipaddress.ip_address(value)
    except ValueError:
        return False
    return not (addr.is_private or addr.is_loopback or addr.is_link_local)


def _get_real_ip(request: Request) -> str:
    """Client IP from X-Forwarded-For / X-Real-IP, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        candidate = forwarded.split(",")[0].strip()
        if _is_public_ip(candidate):
            return candidate
    real_ip = request.headers.get("x-real-ip")
    if real_ip and _is_public_ip(real_ip.strip()):
        return real_ip.strip()
    return get_remote_address(request)


# Format: "count/period" where period can be: second, minute, hour, day
RATE_LIMITS = {
    "login": "5/minute",
    "register": "3/minute",
    "refresh": "30/minute",
    "webhook": "60/minute",
    "default": "100/minute",
}

_storage_uri = settings.redis_url if settings.redis_url else "memory://"

if not settings.redis_url:
    logger.warning("Rate limiter using in-memory storage; limits are per process")
    if settings.is_production:
        logger.critical("REDIS_URL is not set in production; rate limits are not shared between workers")

limiter = Limiter(
    key_func=_get_real_ip,
    storage_uri=_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """
    Get rate limit configuration for a specific endpoint.

    Example:
        >>> get_rate_limit("login")
        "5/minute"
        >>> get_rate_limit("unknown")
        "100/minute"
    """
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
