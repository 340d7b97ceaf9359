"""Tests for the Redis-backed request limiter."""

import asyncio

from redis.exceptions import ConnectionError as RedisConnectionError

from pharmacy.core import ratelimit
from pharmacy.core.ratelimit import RateLimiter


class FakeRedis:
    def __init__(self):
        self.counts = {}
        self.expiry = {}

    async def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key, seconds):
        self.expiry[key] = seconds


class BrokenRedis:
    async def incr(self, key):
        raise RedisConnectionError("down")


class TestRateLimiter:
    def test_counts_down_then_blocks(self):
        fake = FakeRedis()
        limiter = RateLimiter(client_factory=lambda: fake, limit=2, window=60)

        assert asyncio.run(limiter.hit("1.2.3.4")) == (True, 1)
        assert asyncio.run(limiter.hit("1.2.3.4")) == (True, 0)
        assert asyncio.run(limiter.hit("1.2.3.4")) == (False, 0)
        assert list(fake.expiry.values()) == [60]

    def test_clients_counted_separately(self):
        limiter = RateLimiter(client_factory=FakeRedis, limit=1)

        assert asyncio.run(limiter.hit("a"))[0]
        assert asyncio.run(limiter.hit("b"))[0]
        assert not asyncio.run(limiter.hit("a"))[0]


class TestMiddleware:
    def _enable(self, monkeypatch, client_factory, limit=1):
        monkeypatch.setattr(ratelimit.settings, "RATE_LIMIT_PER_MINUTE", limit)
        monkeypatch.setattr(ratelimit, "_limiter", RateLimiter(client_factory=client_factory, limit=limit))

    def test_returns_429_over_limit(self, client, monkeypatch):
        self._enable(monkeypatch, FakeRedis)

        first = client.get("/health")
        second = client.get("/health")

        assert first.status_code == 200
        assert first.headers["X-RateLimit-Limit"] == "1"
        assert first.headers["X-RateLimit-Remaining"] == "0"
        assert second.status_code == 429
        assert second.json() == {"detail": "Too many requests"}

    def test_fails_open_when_redis_is_down(self, client, monkeypatch):
        self._enable(monkeypatch, BrokenRedis)

        resp = client.get("/health")

        assert resp.status_code == 200


class TestAsyncClient:
    def test_limiter_uses_asyncio_client(self):
        from redis.asyncio import Redis

        client = ratelimit.redis_client()

        assert isinstance(client, Redis)
        assert asyncio.iscoroutinefunction(RateLimiter.hit)
