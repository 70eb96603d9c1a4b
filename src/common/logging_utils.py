"""Centralized logging configuration and structured logging helpers.

Human-readable output by default; set MODGATE_LOG_FORMAT=json for one JSON
object per line. DEBUG events carry structured fields through ``extra`` so the
JSON formatter can emit them as keys.
"""
from __future__ import annotations

import json
import logging
import os
import re
import sys
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_CONTEXT_KEY = "context_fields"
_SENSITIVE_PARAMS = {"token", "access_token", "api_key", "apikey", "key", "password", "secret", "auth"}
_REDACTED = "[REDACTED]"


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = getattr(record, _CONTEXT_KEY, None)
        if isinstance(fields, dict):
            payload.update(fields)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure the root logger once per process.

    Args:
        level: Level name; defaults to MODGATE_LOG_LEVEL or INFO.
        log_file: Optional path receiving a second, timestamped handler.
    """
    level_name = (level or os.environ.get("MODGATE_LOG_LEVEL") or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if os.environ.get("MODGATE_LOG_FORMAT", "human").lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    root.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        root.addHandler(file_handler)

    root.setLevel(level_value)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by this logger."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build the ``extra`` mapping for a structured log call, dropping None values."""
    return {_CONTEXT_KEY: {k: v for k, v in fields.items() if v is not None}}


def redact(text: str) -> str:
    """Mask bearer tokens and basic-auth credentials embedded in free text."""
    text = re.sub(r"(?i)(bearer\s+)[A-Za-z0-9._\-]+", r"\1" + _REDACTED, text)
    return re.sub(r"(https?://)[^/@\s:]+:[^/@\s]+@", r"\1" + _REDACTED + "@", text)


def safe_url(url: str) -> str:
    """Return the URL with userinfo and sensitive query values redacted."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return redact(url)
    netloc = parts.netloc
    if "@" in netloc:
        netloc = f"{_REDACTED}@{netloc.rsplit('@', 1)[1]}"
    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = urllib.parse.urlencode(
            [(k, _REDACTED if k.lower() in _SENSITIVE_PARAMS else v) for k, v in pairs],
            safe="[]",
        )
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 2)
