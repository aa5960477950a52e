"""Process-wide logging setup and structured logging helpers.

configure_logging() installs a single root handler once per process; every
module then logs through ``logging.getLogger(__name__)``. Debug traces pass
structured fields with ``extra=extra_context(...)``.
"""
from __future__ import annotations

import logging
import os
import re
import sys
import time
from typing import Any, Dict, Optional

from ..constants import Constants

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG)

_configured = False


def verbosity_level(verbosity: int) -> int:
    """Map a verbosity count to a logging level.

    0 -> ERROR, 1 -> WARNING, 2 -> INFO, 3 -> DEBUG, anything higher -> TRACE.
    """
    if verbosity < 0:
        return logging.ERROR
    if verbosity < len(_VERBOSITY_LEVELS):
        return _VERBOSITY_LEVELS[verbosity]
    return TRACE


def _level_from_env(default: int) -> int:
    name = os.environ.get(Constants.ENV_LOG_LEVEL, "").strip().upper()
    if not name:
        return default
    if name == "TRACE":
        return TRACE
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def configure_logging(level: int = logging.INFO) -> None:
    """Install the root handler. Safe to call more than once.

    The first call wins for the handler; later calls only adjust the level.
    ELMSOLVE_LOG_LEVEL overrides ``level`` when set.
    """
    global _configured  # pylint: disable=global-statement
    root = logging.getLogger()
    root.setLevel(_level_from_env(level))
    if _configured:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    root.addHandler(handler)
    _configured = True


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for structured log records, dropping None values."""
    return {key: value for key, value in fields.items() if value is not None}


_CREDENTIALS_RE = re.compile(r"(//)[^/@]+@")
_QUERY_SECRET_RE = re.compile(r"((?:token|key|secret|password)=)[^&]+", re.IGNORECASE)


def safe_url(url: Optional[str]) -> Optional[str]:
    """Strip credentials and secret query values from a URL before logging it."""
    if not url:
        return url
    cleaned = _CREDENTIALS_RE.sub(r"\1", url)
    return _QUERY_SECRET_RE.sub(r"\1***", cleaned)


class Timer:
    """Context manager measuring wall time in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)


def report_error(logger: logging.Logger, error: BaseException) -> str:
    """Log an error with its full message and return the caller-facing text."""
    message = str(error)
    logger.error(
        "%s",
        message,
        extra=extra_context(
            event="solve_error",
            component="service",
            error_type=type(error).__name__,
        ),
    )
    return message
