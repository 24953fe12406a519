"""In-memory token-bucket rate limiting for the PrimeSite API."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

EXPENSIVE_PREFIXES = (
    "/api/publish/",
    "/api/uploads/",
    "/api/domains/purchase",
)
EXEMPT_PATHS = ("/health", "/docs", "/openapi.json")
READ_METHODS = ("GET", "HEAD", "OPTIONS", "DELETE")


@dataclass
class TokenBucket:
    capacity: float
    tokens: float
    refilled_at: float

    def take(self, now: float) -> bool:
        self.tokens = min(self.capacity, self.tokens + (now - self.refilled_at) * self.capacity / 60.0)
        self.refilled_at = now
        if self.tokens < 1.0:
            return False
        self.tokens -= 1.0
        return True


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Token-bucket rate limiter keyed by client IP.

    Writes to publish, upload and domain purchase routes draw from a smaller
    per-minute allowance because each one fans out to paid provider calls.
    """

    def __init__(
        self,
        app,
        default_rpm: int = 120,
        expensive_rpm: int = 20,
        expensive_prefixes: tuple[str, ...] = EXPENSIVE_PREFIXES,
        clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__(app)
        self.limits = {"default": default_rpm, "expensive": expensive_rpm}
        self.expensive_prefixes = expensive_prefixes
        self._clock = clock or time.monotonic
        self._buckets: dict[tuple[str, str], TokenBucket] = {}

    @staticmethod
    def client_key(request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def bucket_name(self, path: str, method: str) -> str:
        if method not in READ_METHODS and path.startswith(self.expensive_prefixes):
            return "expensive"
        return "default"

    def _take(self, client: str, name: str) -> bool:
        now = self._clock()
        rpm = self.limits[name]
        bucket = self._buckets.get((client, name))
        if bucket is None:
            bucket = self._buckets[(client, name)] = TokenBucket(float(rpm), float(rpm), now)
        return bucket.take(now)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in EXEMPT_PATHS:
            return await call_next(request)

        name = self.bucket_name(path, request.method)
        if self._take(self.client_key(request), name):
            return await call_next(request)

        retry_after = max(1, 60 // self.limits[name])
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Please slow down.", "retry_after_seconds": retry_after},
            headers={"Retry-After": str(retry_after)},
        )


__all__ = ["EXPENSIVE_PREFIXES", "RateLimitMiddleware", "TokenBucket"]
