# miqat/utils/networking.py
"""
Outbound HTTP with per-attempt timeout and exponential backoff.

Retried: transport errors, per-attempt timeouts, 5xx, 429.
Returned as-is (no retry): 2xx and every other 4xx, so the caller can decide.
After the last attempt the failure is raised as FetchError.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

import httpx

log = logging.getLogger(__name__)

__all__ = ["FetchError", "fetch_with_retry", "is_retryable_status"]


class FetchError(RuntimeError):
    def __init__(self, url: str, message: str, status: Optional[int] = None, attempts: int = 0):
        self.url = url
        self.status = status
        self.attempts = attempts
        super().__init__(message)


def is_retryable_status(status: int) -> bool:
    return status >= 500 or status == 429


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    *,
    retries: int = 3,
    backoff_ms: float = 1000.0,
    timeout_ms: float = 5000.0,
    backoff_factor: float = 2.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> httpx.Response:
    """GET `url`; at most `retries + 1` attempts."""
    delay = backoff_ms / 1000.0
    attempt = 0
    while True:
        attempt += 1
        status: Optional[int] = None
        try:
            resp = await asyncio.wait_for(client.get(url, params=params), timeout=timeout_ms / 1000.0)
            if not is_retryable_status(resp.status_code):
                return resp
            status = resp.status_code
            reason = f"HTTP {status}"
        except asyncio.TimeoutError:
            reason = f"timed out after {timeout_ms:.0f} ms"
        except httpx.TransportError as e:
            reason = f"{type(e).__name__}: {e}"

        if attempt > retries:
            raise FetchError(url, f"{reason} (after {attempt} attempts)", status=status, attempts=attempt)

        log.info("GET %s failed (%s); retry %d/%d in %.2fs", url, reason, attempt, retries, delay)
        await sleep(delay)
        delay *= backoff_factor
