"""
Free vs. premium access classification for catalog tests.

The rules are evaluated in a fixed order and the first match wins. The
classifier is pure: callers load ``AccessSettings`` and the user's
``UserSubscriptionState`` and pass them in.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Mapping


class AccessClassification(StrEnum):
    """How a test is made available to the current user."""

    FREE_FOR_ALL = "free-for-all"
    FREE_BY_QUOTA = "free-by-quota"
    PREMIUM_AVAILABLE = "premium-available"
    PREMIUM_REQUIRED = "premium-required"


class SubscriptionStatus(StrEnum):
    """Subscription lifecycle states exposed to the access gate."""

    NONE = "none"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class PlanTier(StrEnum):
    FREE = "free"
    PREMIUM = "premium"


DEFAULT_FREE_TESTS_COUNT = 5


@dataclass(frozen=True)
class AccessSettings:
    """Administrator-controlled access configuration.

    ``premium_test_indices`` holds 1-based catalog positions.
    """

    free_tests_enabled: bool = True
    free_tests_count: int = DEFAULT_FREE_TESTS_COUNT
    premium_required: bool = True
    global_free_access: bool = False
    premium_test_indices: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.free_tests_count < 0:
            raise ValueError("free_tests_count must be >= 0")
        if not isinstance(self.premium_test_indices, frozenset):
            object.__setattr__(self, "premium_test_indices", frozenset(self.premium_test_indices))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "AccessSettings":
        """Build settings from stored or imported data.

        Accepts snake_case or the camelCase keys of older exports. Missing
        keys take defaults; negative counts clamp to zero; non-integer
        premium indices are dropped.
        """
        if not data:
            return cls()

        def pick(snake: str, camel: str, default):
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        try:
            count = int(pick("free_tests_count", "freeTestsCount", DEFAULT_FREE_TESTS_COUNT))
        except (TypeError, ValueError):
            count = DEFAULT_FREE_TESTS_COUNT

        indices = set()
        for raw in pick("premium_test_indices", "specificPremiumTests", None) or ():
            try:
                indices.add(int(raw))
            except (TypeError, ValueError):
                continue

        return cls(
            free_tests_enabled=bool(pick("free_tests_enabled", "freeTestsEnabled", True)),
            free_tests_count=max(0, count),
            premium_required=bool(pick("premium_required", "premiumRequired", True)),
            global_free_access=bool(pick("global_free_access", "globalFreeAccess", False)),
            premium_test_indices=frozenset(indices),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "free_tests_enabled": self.free_tests_enabled,
            "free_tests_count": self.free_tests_count,
            "premium_required": self.premium_required,
            "global_free_access": self.global_free_access,
            "premium_test_indices": sorted(self.premium_test_indices),
        }


@dataclass(frozen=True)
class UserSubscriptionState:
    """Read-only view of a user's subscription."""

    status: SubscriptionStatus = SubscriptionStatus.NONE
    plan: PlanTier = PlanTier.FREE

    @classmethod
    def anonymous(cls) -> "UserSubscriptionState":
        return cls()


def is_entitled(subscription: UserSubscriptionState | None) -> bool:
    """True when the subscription satisfies a premium requirement."""
    if subscription is None:
        return False
    return subscription.status == SubscriptionStatus.ACTIVE and subscription.plan == PlanTier.PREMIUM


def _premium(subscription: UserSubscriptionState | None) -> AccessClassification:
    if is_entitled(subscription):
        return AccessClassification.PREMIUM_AVAILABLE
    return AccessClassification.PREMIUM_REQUIRED


def classify_test_access(
    index: int,
    settings: AccessSettings,
    subscription: UserSubscriptionState | None = None,
) -> AccessClassification:
    """Classify the test at zero-based catalog position *index*."""
    if settings.global_free_access:
        return AccessClassification.FREE_FOR_ALL

    if (index + 1) in settings.premium_test_indices:
        return _premium(subscription)

    if settings.free_tests_enabled and index < settings.free_tests_count:
        return AccessClassification.FREE_BY_QUOTA

    if settings.premium_required and index >= settings.free_tests_count:
        return _premium(subscription)

    return AccessClassification.FREE_FOR_ALL


def grants_access(classification: AccessClassification) -> bool:
    """Whether the classification lets the user open the test."""
    return classification != AccessClassification.PREMIUM_REQUIRED
