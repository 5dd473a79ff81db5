"""Per-client fixed-window rate limiting for the auth and user routes."""

from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory limiter keyed by client IP and limited path prefix.

    Requests outside *prefixes* pass straight through.  Counters live in
    process memory, so each worker enforces its own budget.  Expired
    windows are evicted at most once per window length.
    """

    def __init__(
        self,
        app,
        prefixes: tuple[str, ...],
        max_requests: int = 100,
        window_seconds: int = 15 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(app)
        self.prefixes = prefixes
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.memory_store: dict[str, tuple[int, float]] = {}
        self._next_eviction = 0.0

    def _matching_prefix(self, path: str) -> str | None:
        for prefix in self.prefixes:
            if path == prefix or path.startswith(prefix + "/"):
                return prefix
        return None

    def _evict_expired(self, now: float) -> None:
        if now < self._next_eviction:
            return
        expired = [key for key, (_, expiry) in self.memory_store.items() if expiry < now]
        for key in expired:
            del self.memory_store[key]
        self._next_eviction = now + self.window_seconds

    async def dispatch(self, request: Request, call_next):
        prefix = self._matching_prefix(request.url.path)
        if prefix is None:
            return await call_next(request)

        now = self.clock()
        self._evict_expired(now)

        client_ip = request.client.host if request.client else "unknown"
        key = f"{client_ip}:{prefix}"
        count, expiry = self.memory_store.get(key, (0, now + self.window_seconds))

        if now > expiry:
            count = 0
            expiry = now + self.window_seconds

        if count >= self.max_requests:
            retry_after = max(int(expiry - now), 1)
            return JSONResponse(
                status_code=429,
                content={"message": RATE_LIMIT_MESSAGE},
                headers={"Retry-After": str(retry_after)},
            )

        self.memory_store[key] = (count + 1, expiry)
        return await call_next(request)
