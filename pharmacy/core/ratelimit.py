import logging
import time
from typing import Callable, Tuple
from fastapi import Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from pharmacy.core.config import settings

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60

def redis_client() -> Redis:
    return Redis.from_url(settings.REDIS_URL, decode_responses=True)

class RateLimiter:
    """Fixed-window counter per client key, stored in Redis."""

    def __init__(self, client_factory: Callable[[], Redis] = redis_client, limit: int = 60, window: int = WINDOW_SECONDS):
        self.client_factory = client_factory
        self.limit = limit
        self.window = window
        self._client = None

    def _key(self, ident: str) -> str:
        bucket = int(time.time() // self.window)
        return f"ratelimit:{ident}:{bucket}"

    async def hit(self, ident: str) -> Tuple[bool, int]:
        """Count one request; returns (allowed, remaining)."""
        if self._client is None:
            self._client = self.client_factory()
        key = self._key(ident)
        count = await self._client.incr(key)
        if count == 1:
            await self._client.expire(key, self.window)
        remaining = max(0, self.limit - count)
        return count <= self.limit, remaining

_limiter = None

def get_limiter() -> RateLimiter:
    global _limiter
    if _limiter is None:
        _limiter = RateLimiter(limit=settings.RATE_LIMIT_PER_MINUTE)
    return _limiter

async def rate_limit_middleware(request: Request, call_next):
    if settings.RATE_LIMIT_PER_MINUTE <= 0:
        return await call_next(request)
    limiter = get_limiter()
    ident = request.client.host if request.client else "unknown"
    try:
        allowed, remaining = await limiter.hit(ident)
    except RedisError as e:
        logger.warning("Rate limiter unavailable, letting request through: %r", e)
        return await call_next(request)
    headers = {"X-RateLimit-Limit": str(limiter.limit), "X-RateLimit-Remaining": str(remaining)}
    if not allowed:
        return JSONResponse(status_code=429, content={"detail": "Too many requests"}, headers=headers)
    response = await call_next(request)
    response.headers.update(headers)
    return response
