"""
Post-sign-in redirect flow.

The login endpoint computes the destination with ``resolve_return_to`` and
returns it as ``redirect_to`` together with ``redirect_delay_ms``. Clients
then show a confirmation briefly and navigate there. ``AuthRedirectFlow`` is
that client-side contract written out as a state machine: the final
transition is scheduled on the event loop and can be cancelled (e.g. the view
is torn down) so a stale redirect never fires.
"""

import asyncio
import logging
from enum import StrEnum
from typing import Callable
from urllib.parse import urlsplit

from core.locale import DEFAULT_LOCALE, Locale, coerce_locale, locale_from_path, localized_path

logger = logging.getLogger(__name__)

REDIRECT_DELAY_SECONDS = 1.0


class AuthRedirectState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    REDIRECTING = "redirecting"
    REDIRECTED = "redirected"


class InvalidTransition(Exception):
    """Raised when an event is not valid in the current state."""


def default_landing_path(lang: str | None) -> str:
    return localized_path(coerce_locale(lang), "/dashboard")


def resolve_return_to(return_to: str | None, lang: str | None = None) -> str:
    """Return a safe post-login destination.

    Only same-site absolute paths are honoured (``/ar/tests``); anything with a
    scheme, host, or protocol-relative prefix falls back to the dashboard.
    Paths without a locale prefix are placed under *lang*.
    """
    if not return_to:
        return default_landing_path(lang)

    candidate = return_to.strip()
    parts = urlsplit(candidate)
    if (
        parts.scheme
        or parts.netloc
        or not candidate.startswith("/")
        or candidate.startswith("//")
        or "\\" in candidate
    ):
        logger.warning("Rejected unsafe return_to value: %r", candidate[:100])
        return default_landing_path(lang)

    if locale_from_path(parts.path) is None:
        candidate = localized_path(coerce_locale(lang), candidate)
    return candidate


class AuthRedirectFlow:
    """State machine driving the redirect after authentication.

    ``navigate`` is called exactly once with the destination when the
    scheduled transition fires. ``cancel()`` before then suppresses it.
    """

    def __init__(
        self,
        navigate: Callable[[str], None],
        lang: Locale | str = DEFAULT_LOCALE,
        delay: float = REDIRECT_DELAY_SECONDS,
    ):
        self._navigate = navigate
        self._lang = coerce_locale(str(lang))
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self.state = AuthRedirectState.UNAUTHENTICATED
        self.destination: str | None = None

    def begin(self) -> None:
        """Sign-in started."""
        if self.state != AuthRedirectState.UNAUTHENTICATED:
            raise InvalidTransition(f"cannot begin sign-in from {self.state}")
        self.state = AuthRedirectState.AUTHENTICATING

    def fail(self) -> None:
        """Sign-in failed; back to the start."""
        if self.state != AuthRedirectState.AUTHENTICATING:
            raise InvalidTransition(f"cannot fail sign-in from {self.state}")
        self.state = AuthRedirectState.UNAUTHENTICATED

    def authenticated(self, return_to: str | None = None) -> str:
        """Sign-in succeeded: schedule the redirect and return its target."""
        if self.state not in (AuthRedirectState.UNAUTHENTICATED, AuthRedirectState.AUTHENTICATING):
            raise InvalidTransition(f"cannot complete sign-in from {self.state}")

        self.destination = resolve_return_to(return_to, self._lang)
        self.state = AuthRedirectState.REDIRECTING
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)
        return self.destination

    def cancel(self) -> bool:
        """Abort a pending redirect. Returns True if one was pending."""
        if self.state != AuthRedirectState.REDIRECTING or self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self.state = AuthRedirectState.UNAUTHENTICATED
        self.destination = None
        return True

    def _fire(self) -> None:
        self._handle = None
        if self.state != AuthRedirectState.REDIRECTING:
            return
        self.state = AuthRedirectState.REDIRECTED
        self._navigate(self.destination)
