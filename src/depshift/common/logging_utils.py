"""Centralized logging helpers.

All modules log through ``logging.getLogger(__name__)``; this module only
configures the root logger once and provides small helpers for structured
``extra=`` payloads, URL redaction and timing.
"""

from __future__ import annotations

import logging
import os
import re
import time
import urllib.parse
from typing import Any, Dict, Optional

from ..constants import Constants

_SENSITIVE_PARAMS = {"token", "access_token", "auth", "key", "apikey", "api_key", "password", "secret"}

# Fields every structured record carries, so formatters can rely on them.
_CONTEXT_FIELDS = ("event", "component", "action", "outcome", "target")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger from arguments or environment.

    ``DEPSHIFT_LOG_LEVEL`` selects the level (default INFO) and
    ``DEPSHIFT_LOG_FORMAT`` overrides the format string. Calling this more
    than once only adjusts the level.

    Args:
        level: Optional level name taking precedence over the environment.
    """
    level_name = (level or os.environ.get("DEPSHIFT_LOG_LEVEL") or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    fmt = os.environ.get("DEPSHIFT_LOG_FORMAT") or Constants.LOG_FORMAT

    root = logging.getLogger()
    if not any(getattr(h, "_depshift", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        handler._depshift = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level_value)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records.

    The common context fields are always present (None when not given).
    """
    context = dict(fields)
    for name in _CONTEXT_FIELDS:
        context.setdefault(name, None)
    return context


def redact(text: str) -> str:
    """Mask credential-looking ``key=value`` pairs inside free text."""
    pattern = r"(?i)\b(" + "|".join(sorted(_SENSITIVE_PARAMS)) + r")=([^&\s]+)"
    return re.sub(pattern, r"\1=[REDACTED]", text)


def safe_url(url: str) -> str:
    """Return ``url`` with user info and sensitive query values redacted."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return redact(url)

    netloc = parts.netloc
    if "@" in netloc:
        netloc = "[REDACTED]@" + netloc.rsplit("@", 1)[1]

    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = "&".join(
            f"{k}=[REDACTED]" if k.lower() in _SENSITIVE_PARAMS else f"{k}={v}"
            for k, v in pairs
        )

    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds, measured up to now while still running."""
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000, 2)
