"""Shared HTTP helpers used by the online registry provider.

Encapsulates request/timeout/retry handling so provider code only deals
with status codes and bodies.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from ..constants import Constants
from .logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


class HttpError(Exception):
    """Raised when a request cannot produce a usable response."""

    def __init__(self, url: str, reason: str, status_code: int = 0) -> None:
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"GET {url} failed: {reason}")


# Simple in-memory cache for HTTP responses
_http_cache: Dict[str, Tuple[Any, float]] = {}


def _get_cache_key(method: str, url: str, headers: Optional[Dict[str, str]] = None) -> str:
    """Generate cache key from request parameters."""
    headers_str = str(sorted(headers.items())) if headers else ""
    return f"{method}:{url}:{headers_str}"


def _is_cache_valid(cache_entry: Tuple[Any, float]) -> bool:
    """Check if cache entry is still valid."""
    _, cached_time = cache_entry
    return time.time() - cached_time < Constants.HTTP_CACHE_TTL_SEC


def clear_cache() -> None:
    """Drop every cached response."""
    _http_cache.clear()


def _trace(message: str, target: Optional[str], **fields: Any) -> None:
    if is_debug_enabled(logger):
        logger.debug(
            message,
            extra=extra_context(component="http_client", action="GET", target=target, **fields),
        )


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    use_cache: bool = True,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """GET with timeout, retries on 5xx and transport errors, and a TTL cache.

    Returns:
        Tuple of (status_code, headers_dict, body_text). A status code of 0
        means every attempt failed; the body then holds the last error.
    """
    cache_key = _get_cache_key('GET', url, headers)
    target = safe_url(url)

    cached = _http_cache.get(cache_key) if use_cache else None
    if cached is not None and _is_cache_valid(cached):
        _trace("HTTP cache hit", target, event="cache_hit")
        return cached[0]

    request_headers = {"User-Agent": Constants.USER_AGENT}
    request_headers.update(headers or {})

    failure = "no attempt made"
    for attempt in range(1, Constants.HTTP_RETRY_MAX + 1):
        if attempt > 1:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 2)))
        _trace("HTTP request", target, event="http_request", attempt=attempt)
        with Timer() as timer:
            try:
                response = requests.get(
                    url, timeout=Constants.REQUEST_TIMEOUT, headers=request_headers, **kwargs
                )
            except requests.RequestException as exc:
                failure = "timeout" if isinstance(exc, requests.Timeout) else str(exc)
                _trace("HTTP request exception", target, event="http_exception", outcome=failure, attempt=attempt)
                continue

        if response.status_code >= 500:
            failure = f"HTTP {response.status_code}"
            _trace("HTTP server error", target, event="http_response", status_code=response.status_code)
            continue

        result = (response.status_code, dict(response.headers), response.text)
        if use_cache:
            _http_cache[cache_key] = (result, time.time())
        _trace(
            "HTTP response",
            target,
            event="http_response",
            status_code=response.status_code,
            duration_ms=timer.duration_ms(),
        )
        return result

    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {failure}"


def get_text(url: str, *, use_cache: bool = True) -> str:
    """GET ``url`` and return the body of a 200 response.

    Raises:
        HttpError: on transport failure or any non-200 status.
    """
    status_code, _, text = robust_get(url, use_cache=use_cache)
    if status_code == 0:
        raise HttpError(url, text)
    if status_code != 200:
        raise HttpError(url, f"HTTP {status_code}", status_code)
    return text


def get_json(url: str, *, use_cache: bool = True) -> Any:
    """GET ``url`` and decode its JSON body.

    Raises:
        HttpError: on transport failure, non-200 status, or invalid JSON.
    """
    text = get_text(url, use_cache=use_cache)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise HttpError(url, f"invalid JSON response: {exc}", 200) from exc
