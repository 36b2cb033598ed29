"""Per-process token bucket rate limiting for API routes."""

from __future__ import annotations

import hashlib
import os
import threading
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, Request

from .config import get_app_env


def rate_limit_enabled() -> bool:
    raw = os.getenv("RATE_LIMIT_ENABLED")
    if raw is not None and raw.strip().lower() in {"1", "true", "yes", "0", "false", "no"}:
        return raw.strip().lower() in {"1", "true", "yes"}
    return get_app_env() == "prod"


def _env_float(name: str, default: float, floor: float) -> float:
    try:
        val = float(os.getenv(name, str(default)))
    except Exception:
        val = default
    return max(val, floor)


@dataclass
class Bucket:
    tokens: float
    last_ts: float


class TokenBucketLimiter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._buckets: dict[str, Bucket] = {}

    def allow(self, key: str, *, rps: float, burst: int) -> tuple[bool, float]:
        now = time.monotonic()
        with self._lock:
            bucket = self._buckets.setdefault(key, Bucket(tokens=float(burst), last_ts=now))
            elapsed = max(0.0, now - bucket.last_ts)
            bucket.tokens = min(float(burst), bucket.tokens + elapsed * rps)
            bucket.last_ts = now
            if bucket.tokens >= 1.0:
                bucket.tokens -= 1.0
                return True, 0.0
            retry_after = (1.0 - bucket.tokens) / rps
            return False, max(retry_after, 0.1)


_limiter = TokenBucketLimiter()


def _caller_key(request: Request, authorization: Optional[str]) -> str:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        if token:
            return hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
    return request.client.host if request.client else "unknown"


def _route_group(path: str) -> str:
    parts = [p for p in path.split("/") if p]
    if len(parts) >= 3 and parts[:2] == ["api", "v1"]:
        return parts[2]
    return parts[0] if parts else "/"


def rate_limit_dependency(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> None:
    if not rate_limit_enabled():
        return
    rps = _env_float("RATE_LIMIT_RPS", 5.0, 0.1)
    burst = int(_env_float("RATE_LIMIT_BURST", 20, 1))
    key = f"{_caller_key(request, authorization)}:{_route_group(request.url.path)}"
    allowed, retry_after = _limiter.allow(key, rps=rps, burst=burst)
    if not allowed:
        raise HTTPException(
            status_code=429,
            detail="Too Many Requests",
            headers={"Retry-After": str(max(1, int(retry_after)))},
        )
