"""Unit tests for the post-sign-in redirect flow."""

import asyncio

import pytest

from core.auth_redirect import (
    AuthRedirectFlow,
    AuthRedirectState,
    InvalidTransition,
    resolve_return_to,
)


class TestResolveReturnTo:
    def test_defaults_to_dashboard(self):
        assert resolve_return_to(None) == "/en/dashboard"
        assert resolve_return_to("", "ar") == "/ar/dashboard"

    def test_keeps_localized_path(self):
        assert resolve_return_to("/ar/tests/marquis-test-1?tab=colors", "en") == "/ar/tests/marquis-test-1?tab=colors"

    def test_prefixes_unlocalized_path(self):
        assert resolve_return_to("/tests", "ar") == "/ar/tests"

    @pytest.mark.parametrize(
        "value",
        ["https://evil.example.com/", "//evil.example.com", "javascript:alert(1)", "tests", "/\\evil.example.com"],
    )
    def test_rejects_offsite_targets(self, value):
        assert resolve_return_to(value, "en") == "/en/dashboard"


class TestAuthRedirectFlow:
    async def test_redirect_fires_after_delay(self):
        visited = []
        flow = AuthRedirectFlow(visited.append, lang="ar", delay=0.01)

        flow.begin()
        destination = flow.authenticated("/tests")

        assert destination == "/ar/tests"
        assert flow.state == AuthRedirectState.REDIRECTING
        assert visited == []

        await asyncio.sleep(0.05)
        assert visited == ["/ar/tests"]
        assert flow.state == AuthRedirectState.REDIRECTED

    async def test_cancel_suppresses_navigation(self):
        visited = []
        flow = AuthRedirectFlow(visited.append, delay=0.01)
        flow.authenticated(None)

        assert flow.cancel() is True
        await asyncio.sleep(0.05)

        assert visited == []
        assert flow.state == AuthRedirectState.UNAUTHENTICATED
        assert flow.destination is None

    async def test_cancel_without_pending_redirect(self):
        flow = AuthRedirectFlow(lambda _: None)
        assert flow.cancel() is False

    async def test_failed_sign_in_returns_to_start(self):
        flow = AuthRedirectFlow(lambda _: None)
        flow.begin()
        flow.fail()
        assert flow.state == AuthRedirectState.UNAUTHENTICATED

    async def test_invalid_transitions(self):
        flow = AuthRedirectFlow(lambda _: None, delay=10)
        with pytest.raises(InvalidTransition):
            flow.fail()

        flow.authenticated("/en/tests")
        with pytest.raises(InvalidTransition):
            flow.begin()
        with pytest.raises(InvalidTransition):
            flow.authenticated("/en/tests")
        flow.cancel()
