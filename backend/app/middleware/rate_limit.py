"""
Tulisin Backend — Rate Limiting Middleware
===========================================

What:  Per-IP sliding-window limiter producing the RATE_LIMIT error.
Why:   Keeps one client from exhausting the connection pool (and bcrypt
       time on the auth endpoints) for everybody else.
How:   Each IP keeps a deque of request timestamps. Entries older than the
       window are dropped on every request; a full window is rejected with
       429, a `Retry-After` header and the standard error body:

           {"error": "Too many requests", "code": "RATE_LIMIT",
            "details": {"retryAfter": 12}}

       Errors raised inside BaseHTTPMiddleware never reach the exception
       handlers, so the response is rendered here with the same mapper.

Scope:
    In-memory, so limits are per process. Multi-worker deployments need a
    shared store.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.error_handlers import error_response
from app.exceptions import RateLimitError
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

DEFAULT_EXEMPT_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        max_requests: int = 300,
        window_seconds: int = 60,
        exempt_paths: Iterable[str] = DEFAULT_EXEMPT_PATHS,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.exempt_paths = frozenset(exempt_paths)
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)

    def _client_key(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"

    def check(self, key: str) -> int:
        """
        Record a hit for `key`.

        Returns 0 when the request is allowed, otherwise the number of
        seconds until the oldest hit leaves the window.
        """
        now = self._clock()
        window_start = now - self.window_seconds
        hits = self._hits[key]
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.max_requests:
            return int(hits[0] + self.window_seconds - now) + 1

        hits.append(now)
        if len(self._hits) > 1000:
            self._forget_idle(window_start)
        return 0

    def _forget_idle(self, window_start: float) -> None:
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        client = self._client_key(request)
        retry_after = self.check(client)
        if retry_after:
            logger.warning(
                "[%s] Rate limit exceeded for %s (%d requests / %ds)",
                request_id_var.get(""),
                client,
                self.max_requests,
                self.window_seconds,
            )
            return error_response(RateLimitError("Too many requests", retry_after=retry_after))

        return await call_next(request)
