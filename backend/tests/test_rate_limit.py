"""
Tulisin Backend — Rate Limiter Tests
=====================================

What we test:
    ✅ Sliding window with an injected clock
    ✅ 429 body, Retry-After header and exempt paths through the real app
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import create_app
from app.middleware.rate_limit import RateLimitMiddleware

API = "/api/v1"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


async def _noop_app(scope, receive, send):
    pass


class TestSlidingWindow:
    def setup_method(self):
        self.clock = FakeClock()
        self.limiter = RateLimitMiddleware(
            _noop_app, max_requests=3, window_seconds=60, clock=self.clock
        )

    def test_allows_up_to_limit(self):
        assert [self.limiter.check("1.1.1.1") for _ in range(3)] == [0, 0, 0]

    def test_rejects_over_limit_with_retry_after(self):
        for _ in range(3):
            self.limiter.check("1.1.1.1")
        self.clock.now += 20
        assert self.limiter.check("1.1.1.1") == 41

    def test_window_slides(self):
        for _ in range(3):
            self.limiter.check("1.1.1.1")
        self.clock.now += 60
        assert self.limiter.check("1.1.1.1") == 0

    def test_keys_are_independent(self):
        for _ in range(3):
            self.limiter.check("1.1.1.1")
        assert self.limiter.check("2.2.2.2") == 0

    def test_rejected_requests_do_not_extend_the_window(self):
        for _ in range(3):
            self.limiter.check("1.1.1.1")
        for _ in range(5):
            assert self.limiter.check("1.1.1.1") > 0
        self.clock.now += 60
        assert self.limiter.check("1.1.1.1") == 0


class TestRateLimitedApp:
    @pytest.mark.asyncio
    async def test_over_limit_returns_429(self, test_settings, database):
        limited = test_settings.model_copy(
            update={"rate_limit_enabled": True, "rate_limit_requests": 10, "rate_limit_window": 60}
        )
        app = create_app(limited, database=database)

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.get(f"{API}/sections")).status_code for _ in range(10)]
            blocked = await client.get(f"{API}/sections")
            health = await client.get("/health")

        assert statuses == [401] * 10
        assert blocked.status_code == 429
        assert int(blocked.headers["Retry-After"]) > 0
        body = blocked.json()
        assert body["error"] == "Too many requests"
        assert body["code"] == "RATE_LIMIT"
        assert body["details"]["retryAfter"] == int(blocked.headers["Retry-After"])
        assert "X-Request-ID" in blocked.headers
        assert health.status_code == 200
