"""Logging helpers shared by every module.

Keeps structured ``extra=`` payloads consistent across components and makes
sure URLs that may embed credentials never reach a log line verbatim.
"""
from __future__ import annotations

import logging
import os
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

# Keys that logging.LogRecord already owns; passing them via extra= raises.
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}

_CONTEXT_KEYS = ("event", "component", "action", "outcome", "target", "status_code", "duration_ms")


class ContextFormatter(logging.Formatter):
    """Formatter that appends structured context fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        pairs = []
        for key in _CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                pairs.append(f"{key}={value}")
        if pairs and record.levelno <= logging.DEBUG:
            return f"{base} [{' '.join(pairs)}]"
        return base


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once.

    The level comes from ``level`` or the DEPFETCH_LOG_LEVEL environment
    variable, defaulting to INFO. Calling this again only adjusts the level.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    root.setLevel(level_value)
    if any(getattr(h, "_depfetch", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter(Constants.LOG_FORMAT))
    handler._depfetch = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping, dropping None values and reserved names."""
    context: Dict[str, Any] = {}
    for key, value in fields.items():
        if value is None:
            continue
        if key in _RESERVED:
            key = f"ctx_{key}"
        context[key] = value
    return context


def safe_url(url: str) -> str:
    """Strip userinfo, query and fragment from a URL before logging it."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return "<invalid url>"
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urllib.parse.urlunsplit((parts.scheme, host, parts.path, "", ""))


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
