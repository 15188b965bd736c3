"""
Logging setup.

Development gets a readable single-line format; production gets one JSON
object per line. Every record passes through two filters: one stamps the
current request context (request id, locale) onto it, the other scrubs
credentials.
"""

import json
import logging
import re
import sys
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import Any

_request_context: ContextVar[dict[str, Any]] = ContextVar("request_context", default={})

_REDACTIONS = [
    (re.compile(r"(Authorization:\s*Bearer\s+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"((?:access|refresh)_token[\"'\s:=]+)[^\s&;\"']+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(password[\"'\s:=]+)[^\s&\"']+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(secret[\"'\s:=]+)[^\s&\"']+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(X-Signature[\"'\s:=]+)[0-9a-f]+", re.IGNORECASE), r"\1[REDACTED]"),
]

CONTEXT_FIELDS = ("request_id", "locale")
EXTRA_FIELDS = ("method", "path", "status_code", "duration_ms", "user_id")


def bind_request_context(**values: Any) -> Token:
    """Attach values to every record logged in the current context."""
    merged = {**_request_context.get(), **{k: v for k, v in values.items() if v is not None}}
    return _request_context.set(merged)


def reset_request_context(token: Token) -> None:
    _request_context.reset(token)


def redact(value: str) -> str:
    for pattern, replacement in _REDACTIONS:
        value = pattern.sub(replacement, value)
    return value


class RequestContextFilter(logging.Filter):
    """Copies the bound request context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _request_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrubs tokens, passwords, secrets and webhook signatures."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(redact(a) if isinstance(a, str) else a for a in record.args)
        elif isinstance(record.args, dict):
            record.args = {k: (redact(v) if isinstance(v, str) else v) for k, v in record.args.items()}
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        for key in CONTEXT_FIELDS + EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        # Arabic test names stay readable in the log stream
        return json.dumps(entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable format with the request id appended when known."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        request_id = getattr(record, "request_id", None)
        return f"{line} [{request_id}]" if request_id else line


def setup_logging(json_output: bool = False, level: str = "INFO") -> None:
    """
    Configure the root logger.

    Args:
        json_output: JSON lines (production) instead of the console format.
        level: Log level name.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())
    handler.addFilter(RequestContextFilter())
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
