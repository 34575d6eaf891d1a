# miqat/utils/ratelimit.py
from __future__ import annotations

"""
Per-process token-bucket rate limiting for the Flask views.

Buckets are keyed by client (API key, bearer token, or IP) plus endpoint.
Env:
    MIQAT_RL_DISABLE    -> skip limiting entirely (read per request)
    MIQAT_RL_ALLOWLIST  -> comma-separated client ids/IPs that are never limited
"""

import math
import os
import time
from dataclasses import dataclass
from functools import wraps
from threading import RLock
from typing import Any, Callable, Dict, Optional, Tuple

from flask import jsonify, make_response, request

__all__ = ["rate_limit", "limiter", "TokenBucketLimiter", "client_key"]


def _first_forwarded_for(req) -> str:
    xff = req.headers.get("X-Forwarded-For", "")
    return (xff.split(",")[0].strip() if xff else "") or (req.remote_addr or "anon")


def client_key(req) -> str:
    """X-API-Key, else bearer token, else IP; scoped to the endpoint."""
    ident = (req.headers.get("X-API-Key") or "").strip()
    if not ident:
        auth = (req.headers.get("Authorization") or "").strip()
        if auth.lower().startswith("bearer "):
            ident = auth.split(None, 1)[1]
    return f"{ident or _first_forwarded_for(req)}:{(req.endpoint or req.path) or '*'}"


def _env_on(name: str) -> bool:
    return os.getenv(name, "0").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Bucket:
    tokens: float
    capacity: float
    rate: float      # tokens per second
    ts: float        # last refill (monotonic)


class TokenBucketLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic, idle_evict_s: float = 180.0):
        self.clock = clock
        self.idle_evict_s = idle_evict_s
        self._buckets: Dict[str, Bucket] = {}
        self._lock = RLock()
        self._last_sweep = 0.0

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < 30.0:
            return
        self._last_sweep = now
        idle = [k for k, b in self._buckets.items()
                if b.tokens >= b.capacity and now - b.ts > self.idle_evict_s]
        for k in idle:
            del self._buckets[k]

    def take(self, key: str, per_minute: int, capacity: float, cost: float = 1.0) -> Tuple[bool, int, int]:
        """Consume `cost` tokens. Returns (allowed, remaining, seconds_until_next_token)."""
        rate = per_minute / 60.0
        now = self.clock()
        with self._lock:
            self._sweep(now)
            b = self._buckets.get(key)
            if b is None:
                b = self._buckets[key] = Bucket(tokens=capacity, capacity=capacity, rate=rate, ts=now)
            elif now > b.ts:
                b.tokens = min(b.capacity, b.tokens + (now - b.ts) * b.rate)
                b.ts = now

            if b.tokens + 1e-12 < cost:
                return False, 0, max(1, math.ceil((cost - b.tokens) / b.rate))
            b.tokens -= cost
            wait = 0 if b.tokens >= b.capacity else max(0, math.ceil((1.0 - (b.tokens % 1.0)) / b.rate))
            return True, max(0, int(b.tokens)), wait

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


limiter = TokenBucketLimiter()


def rate_limit(max_per_minute: int, key_fn: Optional[Callable[[Any], str]] = None, *,
               burst: Optional[int] = None, cost: float = 1.0):
    """
    On limit returns 429 {"ok": False, "error": "rate_limited", ...} with Retry-After.
    Every response carries X-RateLimit-Limit / -Remaining / -Reset / -Policy.
    """
    if max_per_minute <= 0:
        raise ValueError("max_per_minute must be > 0")
    limit = int(max_per_minute)
    capacity = float(burst if burst is not None else limit)
    policy = f"{limit};w=60;burst={int(capacity)}"
    allowlist = {s.strip() for s in os.getenv("MIQAT_RL_ALLOWLIST", "").split(",") if s.strip()}

    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if _env_on("MIQAT_RL_DISABLE") or request.method in ("HEAD", "OPTIONS"):
                return f(*args, **kwargs)
            key = str((key_fn or client_key)(request))
            if key in allowlist or key.split(":", 1)[0] in allowlist:
                return f(*args, **kwargs)

            allowed, remaining, reset = limiter.take(key, limit, capacity, cost)
            if not allowed:
                resp = make_response(jsonify(
                    ok=False, error="rate_limited", details={"retry_after_seconds": reset}), 429)
                resp.headers["Retry-After"] = str(reset)
            else:
                resp = make_response(f(*args, **kwargs))
            resp.headers["X-RateLimit-Limit"] = str(limit)
            resp.headers["X-RateLimit-Remaining"] = str(remaining)
            resp.headers["X-RateLimit-Reset"] = str(reset)
            resp.headers["X-RateLimit-Policy"] = policy
            return resp

        return wrapper

    return decorator
