"""
Football Academy Backend — Health & Middleware Tests
======================================================

What:  /health reporting and the request-id and rate-limit middleware.
"""

import pytest

from academy import database
from academy.database import build_engine
from academy.middleware.rate_limit import RateLimitMiddleware


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["database_latency_ms"] is not None

    @pytest.mark.asyncio
    async def test_unreachable_database(self, test_client, monkeypatch):
        broken = build_engine("sqlite+aiosqlite:////nonexistent-dir/academy.db")
        monkeypatch.setattr(database, "engine", broken)
        try:
            response = await test_client.get("/health")
        finally:
            await broken.dispose()
        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"


class TestRequestId:

    @pytest.mark.asyncio
    async def test_generated_when_absent(self, test_client):
        response = await test_client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.get("/api/auth/me", headers={"X-Request-ID": "trace-42"})
        assert response.status_code == 401
        assert response.json()["request_id"] == "trace-42"


class TestRateLimiter:

    def test_sliding_window(self):
        limiter = RateLimitMiddleware(app=None)
        key = ("general", "10.0.0.1")
        assert limiter.check(key, 2, 60, now=1000.0) is None
        assert limiter.check(key, 2, 60, now=1001.0) is None
        assert limiter.check(key, 2, 60, now=1002.0) == 59
        # First hit slides out of the window
        assert limiter.check(key, 2, 60, now=1060.5) is None

    def test_buckets_are_independent(self):
        limiter = RateLimitMiddleware(app=None)
        assert limiter.check(("login", "10.0.0.1"), 1, 60, now=0.0) is None
        assert limiter.check(("login", "10.0.0.1"), 1, 60, now=1.0) is not None
        assert limiter.check(("login", "10.0.0.2"), 1, 60, now=1.0) is None
        assert limiter.check(("general", "10.0.0.1"), 1, 60, now=1.0) is None

    def test_cleanup_drops_idle_clients(self):
        limiter = RateLimitMiddleware(app=None)
        limiter.check(("general", "old"), 5, 60, now=0.0)
        limiter._cleanup_inactive(now=100000.0)
        assert ("general", "old") not in limiter._requests

    @pytest.mark.asyncio
    async def test_health_is_never_limited(self, test_client, monkeypatch):
        from academy.middleware import rate_limit

        monkeypatch.setattr(rate_limit.settings, "rate_limit_requests", 1)
        for _ in range(3):
            assert (await test_client.get("/health")).status_code == 200

    @pytest.mark.asyncio
    async def test_rejection_carries_request_id(self, test_client, monkeypatch):
        from academy.middleware import rate_limit

        monkeypatch.setattr(rate_limit.settings, "login_rate_limit_requests", 1)
        body = {"username": "ghost", "password": "secret123"}
        await test_client.post("/api/auth/login", json=body)
        response = await test_client.post(
            "/api/auth/login", json=body, headers={"X-Request-ID": "trace-429"}
        )
        assert response.status_code == 429
        assert response.headers["X-Request-ID"] == "trace-429"
        assert response.json()["request_id"] == "trace-429"
        assert "Retry-After" in response.headers
