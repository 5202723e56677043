from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from wallmag_auth.domain.entities import RateLimitResult
from wallmag_auth.domain.ports.rate_limiter import RateLimiterPort

logger = logging.getLogger(__name__)


_LUA_INCR_WINDOW = """
-- KEYS[1]: counter key
-- ARGV[1]: window length (seconds)
local n = redis.call('INCR', KEYS[1])
if n == 1 then
  redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return {n, redis.call('TTL', KEYS[1])}
"""


class RedisRateLimiter(RateLimiterPort):
    """Fixed-window counters. Fails closed: an unreachable cache blocks."""

    def __init__(self, redis: Redis, *, key_prefix: str = "rl:") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def increment_and_check(
        self, key: str, limit: int, window_seconds: int
    ) -> RateLimitResult:
        try:
            count, ttl = await self._redis.eval(
                _LUA_INCR_WINDOW, 1, self._key(key), window_seconds
            )
        except RedisError:
            logger.error("rate limiter unavailable; blocking", extra={"key": key})
            return RateLimitResult(count=-1, blocked=True, retry_after=window_seconds)

        count = int(count)
        blocked = count > limit
        retry_after = max(int(ttl), 1) if blocked else None
        return RateLimitResult(count=count, blocked=blocked, retry_after=retry_after)

    async def reset(self, *keys: str) -> None:
        if keys:
            await self._redis.delete(*(self._key(k) for k in keys))

    async def acquire_slot(self, key: str, ttl_seconds: int) -> bool:
        try:
            res = await self._redis.set(self._key(key), "1", ex=ttl_seconds, nx=True)
        except RedisError:
            logger.error("rate limiter unavailable; refusing slot", extra={"key": key})
            return False
        return bool(res)
