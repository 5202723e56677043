from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from wallmag_auth.domain.entities import LockStatus
from wallmag_auth.domain.errors import DependencyUnavailable
from wallmag_auth.domain.ports.lockout import LockoutPort

logger = logging.getLogger(__name__)


_LUA_RECORD_FAILURE = """
-- KEYS[1]: lock flag, KEYS[2]: failure counter
-- ARGV[1]: threshold, ARGV[2]: window seconds, ARGV[3]: lock seconds
if redis.call('EXISTS', KEYS[1]) == 1 then
  return {1, redis.call('TTL', KEYS[1]), 0}
end
local n = redis.call('INCR', KEYS[2])
if n == 1 then
  redis.call('EXPIRE', KEYS[2], ARGV[2])
end
if n >= tonumber(ARGV[1]) then
  redis.call('SET', KEYS[1], '1', 'EX', ARGV[3])
  redis.call('DEL', KEYS[2])
  return {1, tonumber(ARGV[3]), n}
end
return {0, 0, n}
"""


class RedisLockout(LockoutPort):
    """Lock flags and failure counters. Lock checks fail closed."""

    def __init__(
        self,
        redis: Redis,
        *,
        lock_seconds: int = 1800,
        key_prefix: str = "account:",
    ) -> None:
        self._redis = redis
        self._lock_seconds = lock_seconds
        self._prefix = key_prefix

    def _lock_key(self, identifier: str) -> str:
        return f"{self._prefix}locked:{identifier}"

    def _counter_key(self, identifier: str, scope: str) -> str:
        return f"{self._prefix}failures:{scope}:{identifier}"

    async def check_locked(self, identifier: str) -> LockStatus:
        try:
            ttl = int(await self._redis.ttl(self._lock_key(identifier)))
        except RedisError as e:
            logger.error("lock check unavailable")
            raise DependencyUnavailable() from e
        if ttl > 0:
            return LockStatus(locked=True, remaining_seconds=ttl)
        if ttl == -1:
            # flag without expiry; report the configured duration
            return LockStatus(locked=True, remaining_seconds=self._lock_seconds)
        return LockStatus(locked=False)

    async def record_failure(
        self, identifier: str, scope: str, threshold: int, window_seconds: int
    ) -> LockStatus:
        try:
            locked, remaining, failures = await self._redis.eval(
                _LUA_RECORD_FAILURE,
                2,
                self._lock_key(identifier),
                self._counter_key(identifier, scope),
                threshold,
                window_seconds,
                self._lock_seconds,
            )
        except RedisError as e:
            logger.error("failure counter unavailable", extra={"scope": scope})
            raise DependencyUnavailable() from e
        return LockStatus(
            locked=bool(int(locked)),
            remaining_seconds=max(int(remaining), 0),
            failures=int(failures),
        )

    async def clear_failures(self, identifier: str, scope: str) -> None:
        await self._redis.delete(self._counter_key(identifier, scope))
