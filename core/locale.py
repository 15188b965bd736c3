"""
Locale resolution for language-prefixed routes.

Every page route lives under ``/<locale>/...``. A request without a locale
prefix is redirected to the same path under the resolved locale, where the
locale comes from (in priority order) the existing prefix, the stored
preference, the ``Accept-Language`` header, and finally the default.

These functions are pure and total: malformed input never raises, it just
fails to match.
"""

from dataclasses import dataclass
from enum import StrEnum


class Locale(StrEnum):
    """Supported UI locales."""

    EN = "en"
    AR = "ar"

    @property
    def direction(self) -> str:
        """Text direction for this locale."""
        return "rtl" if self is Locale.AR else "ltr"


DEFAULT_LOCALE = Locale.EN
SUPPORTED_LOCALES: tuple[str, ...] = tuple(locale.value for locale in Locale)

# Static assets, API routes and well-known files are never locale-prefixed
EXCLUDED_PATH_PREFIXES: tuple[str, ...] = (
    "/_next",
    "/api",
    "/static",
    "/favicon",
    "/icon",
    "/apple-touch-icon",
    "/manifest",
    "/robots",
    "/browserconfig",
)


class ResolutionSource(StrEnum):
    """Where a resolved locale came from."""

    PATH = "path"
    PREFERENCE = "preference"
    HEADER = "header"
    DEFAULT = "default"


@dataclass(frozen=True)
class LocaleResolution:
    """Outcome of resolving the locale for one request."""

    locale: Locale
    source: ResolutionSource
    redirect_to: str | None = None

    @property
    def needs_redirect(self) -> bool:
        return self.redirect_to is not None


def is_supported_locale(tag: str | None) -> bool:
    """Return True if *tag* is one of the supported locale tags."""
    return isinstance(tag, str) and tag in SUPPORTED_LOCALES


def coerce_locale(tag: str | None, default: Locale = DEFAULT_LOCALE) -> Locale:
    """Return *tag* as a Locale, or *default* when unsupported."""
    if isinstance(tag, str):
        normalized = tag.strip().lower()
        if normalized in SUPPORTED_LOCALES:
            return Locale(normalized)
    return default


def text_direction(tag: str | None) -> str:
    """Return ``"rtl"`` or ``"ltr"`` for a locale tag (default locale when unknown)."""
    return coerce_locale(tag).direction


def locale_from_path(path: str) -> Locale | None:
    """Return the locale prefix of *path*, if any.

    Only the first segment is examined: ``/ar`` and ``/ar/tests`` match,
    ``/tests/ar`` and ``/arabic`` do not.
    """
    for locale in Locale:
        if path == f"/{locale.value}" or path.startswith(f"/{locale.value}/"):
            return locale
    return None


def is_excluded_path(path: str) -> bool:
    """Return True for paths that bypass locale redirection."""
    if "." in path:
        return True
    return path.startswith(EXCLUDED_PATH_PREFIXES)


def parse_accept_language(header: str | None) -> list[str]:
    """Split an Accept-Language header into language ranges, in header order.

    Quality weights are stripped, not used for ordering.

    >>> parse_accept_language("ar-SA,en;q=0.5")
    ['ar-SA', 'en']
    """
    if not header:
        return []
    candidates = []
    for part in header.split(","):
        tag = part.split(";", 1)[0].strip()
        if tag:
            candidates.append(tag)
    return candidates


def match_accept_language(header: str | None) -> Locale | None:
    """Return the first supported locale named by an Accept-Language header."""
    for candidate in parse_accept_language(header):
        tag = candidate.lower()
        if tag in SUPPORTED_LOCALES:
            return Locale(tag)
        primary = tag.split("-", 1)[0]
        if primary in SUPPORTED_LOCALES:
            return Locale(primary)
    return None


def localized_path(locale: Locale | str, path: str) -> str:
    """Prefix *path* with a locale segment."""
    if not path.startswith("/"):
        path = "/" + path
    return f"/{Locale(locale).value}{path}"


def resolve_locale(
    path: str,
    accept_language: str | None = None,
    preferred: str | None = None,
    default: Locale = DEFAULT_LOCALE,
) -> LocaleResolution:
    """Resolve the effective locale for a request path.

    Args:
        path: Request path (no query string).
        accept_language: Raw ``Accept-Language`` header value.
        preferred: Stored locale preference (cookie); ignored when invalid.
        default: Fallback locale.

    Returns:
        LocaleResolution. ``redirect_to`` is set only when the path carries
        no locale prefix.
    """
    from_path = locale_from_path(path)
    if from_path is not None:
        return LocaleResolution(locale=from_path, source=ResolutionSource.PATH)

    if is_supported_locale(preferred):
        locale, source = Locale(preferred), ResolutionSource.PREFERENCE
    else:
        locale = match_accept_language(accept_language)
        source = ResolutionSource.HEADER
        if locale is None:
            locale, source = default, ResolutionSource.DEFAULT

    return LocaleResolution(
        locale=locale,
        source=source,
        redirect_to=localized_path(locale, path),
    )
