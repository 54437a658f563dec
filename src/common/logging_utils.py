"""Centralized logging helpers.

Provides one-time root logger configuration, structured ``extra`` payloads
for DEBUG traces, URL redaction so tokens never reach log files, and a small
timer used around network calls.
"""
from __future__ import annotations

import logging
import os
import re
import time
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from constants import Constants

_SENSITIVE_KEYS = ("token", "access_token", "api_key", "apikey", "key", "password", "secret", "sig")
_REDACTED = "REDACTED"
_TOKEN_PATTERN = re.compile(r"(gh[pousr]_[A-Za-z0-9]{20,}|glpat-[A-Za-z0-9_-]{20,})")


def configure_logging(default_level: str = "INFO") -> None:
    """Configure the root logger once, honoring UPWATCH_LOG_LEVEL.

    ``default_level`` applies when the variable is unset or not a level name.
    """
    fallback = getattr(logging, default_level.upper(), logging.INFO)
    level_name = os.environ.get(Constants.ENV_LOG_LEVEL, "").strip().upper()
    level = getattr(logging, level_name, fallback) if level_name else fallback
    if not isinstance(level, int):
        level = fallback
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for structured log records.

    None values are dropped so log formatters only see populated fields.
    """
    return {k: v for k, v in fields.items() if v is not None}


def redact(text: Optional[str]) -> Optional[str]:
    """Mask well-known token shapes inside free text."""
    if not text:
        return text
    return _TOKEN_PATTERN.sub(_REDACTED, text)


def safe_url(url: Optional[str]) -> Optional[str]:
    """Return ``url`` with userinfo and sensitive query values removed."""
    if not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return redact(url)
    netloc = parts.netloc
    if "@" in netloc:
        netloc = f"{_REDACTED}@{netloc.rsplit('@', 1)[1]}"
    query = parts.query
    if query:
        pairs = [
            (k, _REDACTED if k.lower() in _SENSITIVE_KEYS else v)
            for k, v in parse_qsl(query, keep_blank_values=True)
        ]
        query = urlencode(pairs, safe="{}")
    return redact(urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment)))


class Timer:
    """Context manager measuring elapsed wall time in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
