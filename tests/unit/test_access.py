"""Unit tests for the free/premium access classifier."""

import pytest

from core.access import (
    AccessClassification,
    AccessSettings,
    PlanTier,
    SubscriptionStatus,
    UserSubscriptionState,
    classify_test_access,
    grants_access,
    is_entitled,
)

ANONYMOUS = UserSubscriptionState.anonymous()
PREMIUM = UserSubscriptionState(status=SubscriptionStatus.ACTIVE, plan=PlanTier.PREMIUM)


class TestClassifyTestAccess:
    def test_global_free_access_overrides_everything(self):
        settings = AccessSettings(global_free_access=True, premium_test_indices=frozenset({1}))
        assert classify_test_access(0, settings, ANONYMOUS) == AccessClassification.FREE_FOR_ALL
        assert classify_test_access(40, settings, ANONYMOUS) == AccessClassification.FREE_FOR_ALL

    def test_free_quota(self):
        settings = AccessSettings(free_tests_count=3)
        assert classify_test_access(0, settings, ANONYMOUS) == AccessClassification.FREE_BY_QUOTA
        assert classify_test_access(2, settings, ANONYMOUS) == AccessClassification.FREE_BY_QUOTA
        assert classify_test_access(3, settings, ANONYMOUS) == AccessClassification.PREMIUM_REQUIRED

    def test_premium_indices_are_one_based(self):
        settings = AccessSettings(free_tests_count=5, premium_test_indices=frozenset({2}))
        assert classify_test_access(0, settings, ANONYMOUS) == AccessClassification.FREE_BY_QUOTA
        assert classify_test_access(1, settings, ANONYMOUS) == AccessClassification.PREMIUM_REQUIRED

    def test_premium_index_beats_free_quota_for_subscriber(self):
        settings = AccessSettings(free_tests_count=5, premium_test_indices=frozenset({1}))
        assert classify_test_access(0, settings, PREMIUM) == AccessClassification.PREMIUM_AVAILABLE

    def test_subscriber_gets_premium_available(self):
        settings = AccessSettings(free_tests_count=2)
        assert classify_test_access(5, settings, PREMIUM) == AccessClassification.PREMIUM_AVAILABLE

    def test_free_tests_disabled(self):
        settings = AccessSettings(free_tests_enabled=False, free_tests_count=3)
        # Past the count premium applies; inside it nothing matches
        assert classify_test_access(4, settings, ANONYMOUS) == AccessClassification.PREMIUM_REQUIRED
        assert classify_test_access(1, settings, ANONYMOUS) == AccessClassification.FREE_FOR_ALL

    def test_premium_not_required(self):
        settings = AccessSettings(free_tests_count=2, premium_required=False)
        assert classify_test_access(10, settings, ANONYMOUS) == AccessClassification.FREE_FOR_ALL

    def test_zero_free_tests(self):
        settings = AccessSettings(free_tests_count=0)
        assert classify_test_access(0, settings, ANONYMOUS) == AccessClassification.PREMIUM_REQUIRED

    def test_missing_subscription_reads_as_anonymous(self):
        settings = AccessSettings(free_tests_count=0)
        assert classify_test_access(0, settings, None) == AccessClassification.PREMIUM_REQUIRED

    @pytest.mark.parametrize(
        "state",
        [
            UserSubscriptionState(status=SubscriptionStatus.CANCELLED, plan=PlanTier.PREMIUM),
            UserSubscriptionState(status=SubscriptionStatus.EXPIRED, plan=PlanTier.PREMIUM),
            UserSubscriptionState(status=SubscriptionStatus.ACTIVE, plan=PlanTier.FREE),
        ],
    )
    def test_not_entitled(self, state):
        assert is_entitled(state) is False
        assert classify_test_access(9, AccessSettings(), state) == AccessClassification.PREMIUM_REQUIRED


class TestGrantsAccess:
    def test_only_premium_required_denies(self):
        assert grants_access(AccessClassification.FREE_FOR_ALL)
        assert grants_access(AccessClassification.FREE_BY_QUOTA)
        assert grants_access(AccessClassification.PREMIUM_AVAILABLE)
        assert not grants_access(AccessClassification.PREMIUM_REQUIRED)


class TestAccessSettings:
    def test_defaults(self):
        settings = AccessSettings()
        assert settings.free_tests_enabled is True
        assert settings.free_tests_count == 5
        assert settings.premium_required is True
        assert settings.global_free_access is False
        assert settings.premium_test_indices == frozenset()

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            AccessSettings(free_tests_count=-1)

    def test_from_mapping_accepts_camel_case(self):
        settings = AccessSettings.from_mapping(
            {"freeTestsCount": 3, "globalFreeAccess": True, "specificPremiumTests": [4, "7", "x"]}
        )
        assert settings.free_tests_count == 3
        assert settings.global_free_access is True
        assert settings.premium_test_indices == frozenset({4, 7})

    def test_from_mapping_clamps_and_defaults(self):
        settings = AccessSettings.from_mapping({"free_tests_count": -4})
        assert settings.free_tests_count == 0
        assert AccessSettings.from_mapping({"free_tests_count": "many"}).free_tests_count == 5
        assert AccessSettings.from_mapping(None) == AccessSettings()

    def test_to_dict_sorts_indices(self):
        data = AccessSettings(premium_test_indices=[9, 2, 5]).to_dict()
        assert data["premium_test_indices"] == [2, 5, 9]
