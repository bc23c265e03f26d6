"""Shared HTTP helpers used by the remote Maven repository client.

Encapsulates retry/timeout handling so the repository code only deals with
status codes. This module is dependency-light and never raises on network
failures; callers decide whether a miss is fatal.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

# Simple in-memory cache for small text responses (maven-metadata.xml)
_http_cache: Dict[str, Tuple[Any, float]] = {}


def _get_cache_key(method: str, url: str, headers: Optional[Dict[str, str]] = None) -> str:
    """Generate cache key from request parameters."""
    headers_str = str(sorted(headers.items())) if headers else ""
    return f"{method}:{url}:{headers_str}"


def _is_cache_valid(cache_entry: Tuple[Any, float]) -> bool:
    """Check if cache entry is still valid."""
    _, cached_time = cache_entry
    return time.time() - cached_time < Constants.HTTP_CACHE_TTL_SEC


def _backoff(attempt: int) -> None:
    if attempt + 1 < Constants.HTTP_RETRY_MAX:
        time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** attempt))


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout, retries, and caching with DEBUG traces.

    Returns:
        Tuple of (status_code, headers, text); status_code is 0 when every
        attempt failed at the transport level.
    """
    cache_key = _get_cache_key('GET', url, headers)
    safe_target = safe_url(url)

    if cache_key in _http_cache and _is_cache_valid(_http_cache[cache_key]):
        cached_data, _ = _http_cache[cache_key]
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP cache hit",
                extra=extra_context(
                    event="cache_hit",
                    component="http_client",
                    action="GET",
                    target=safe_target
                )
            )
        return cached_data

    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        with Timer() as t:
            try:
                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=headers,
                    **kwargs
                )

                if response.status_code < 500:  # Don't cache server errors
                    cache_data = (response.status_code, dict(response.headers), response.text)
                    _http_cache[cache_key] = (cache_data, time.time())

                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target
                        )
                    )
                if response.status_code >= 500:
                    last_exception = f"HTTP {response.status_code}"
                    _backoff(attempt)
                    continue
                return response.status_code, dict(response.headers), response.text

            except requests.RequestException as exc:  # includes Timeout/ConnectionError
                last_exception = str(exc)
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request exception",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                _backoff(attempt)

    logger.warning("GET %s failed after %s attempts: %s", safe_target, Constants.HTTP_RETRY_MAX, last_exception)
    return 0, {}, ""


def download_file(url: str, target: Path, *, context: str) -> int:
    """Stream ``url`` into ``target``.

    The body is written to a temporary sibling first and renamed on success
    so a partial download never looks like a resolved artifact.

    Returns:
        The HTTP status code, or 0 when every attempt failed at the
        transport level.
    """
    safe_target = safe_url(url)
    partial = target.with_name(target.name + ".part")
    status = 0
    for attempt in range(Constants.HTTP_RETRY_MAX):
        with Timer() as t:
            try:
                with requests.get(url, timeout=Constants.REQUEST_TIMEOUT, stream=True) as response:
                    status = response.status_code
                    if status == 200:
                        target.parent.mkdir(parents=True, exist_ok=True)
                        with open(partial, "wb") as out:
                            for chunk in response.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                                if chunk:
                                    out.write(chunk)
                        partial.replace(target)
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP download",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="download",
                            status_code=status,
                            duration_ms=t.duration_ms(),
                            target=safe_target,
                            context=context
                        )
                    )
                if status < 500:
                    return status
            except (requests.RequestException, OSError) as exc:
                status = 0
                logger.debug("%s download attempt %d for %s failed: %s", context, attempt + 1, safe_target, exc)
                if partial.exists():
                    partial.unlink()
        _backoff(attempt)
    return status
