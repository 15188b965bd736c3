"""
Locale routing middleware.

Runs before routing. Paths without a locale prefix are redirected (307) to
the same path under the resolved locale; prefixed paths continue with
``request.state.locale`` and ``request.state.text_direction`` set and the
response carries ``Content-Language``.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from core.locale import Locale, coerce_locale, is_excluded_path, resolve_locale
from infrastructure.logging_config import bind_request_context, reset_request_context

logger = logging.getLogger(__name__)


class LocaleMiddleware(BaseHTTPMiddleware):
    """Redirects unprefixed page requests to ``/<locale><path>``."""

    def __init__(
        self,
        app,
        cookie_name: str = "preferred_locale",
        default_locale: str = "en",
        exempt_paths: list[str] | None = None,
    ):
        super().__init__(app)
        self.cookie_name = cookie_name
        self.default_locale = coerce_locale(default_locale)
        self.exempt_paths = tuple(exempt_paths or ())

    def is_exempt(self, path: str) -> bool:
        if is_excluded_path(path):
            return True
        return any(path == p or path.startswith(p.rstrip("/") + "/") for p in self.exempt_paths)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if self.is_exempt(path):
            return await call_next(request)

        resolution = resolve_locale(
            path,
            accept_language=request.headers.get("accept-language"),
            preferred=request.cookies.get(self.cookie_name),
            default=self.default_locale,
        )

        if resolution.needs_redirect:
            target = resolution.redirect_to
            if request.url.query:
                target = f"{target}?{request.url.query}"
            logger.debug("Locale redirect %s -> %s (%s)", path, target, resolution.source.value)
            return RedirectResponse(url=target, status_code=307)

        locale: Locale = resolution.locale
        request.state.locale = locale.value
        request.state.text_direction = locale.direction

        token = bind_request_context(locale=locale.value)
        try:
            response = await call_next(request)
        finally:
            reset_request_context(token)
        response.headers["Content-Language"] = locale.value
        return response
