from __future__ import annotations

import time
from typing import Callable

from redis.asyncio import Redis

from wallmag_auth.domain.entities import RevocationStatus
from wallmag_auth.domain.ports.revocation_store import RevocationStorePort

_REVOKED = "revoked"
_ROTATING = "rotating:"


class RedisRevocationStore(RevocationStorePort):
    """
    One key per jti. The value is either "revoked" or "rotating:<deadline>";
    a rotating entry past its deadline reads as revoked. The key TTL always
    covers the token's remaining natural lifetime, so a superseded token can
    never come back as live before it expires on its own.
    """

    def __init__(
        self,
        redis: Redis,
        *,
        key_prefix: str = "token:revocation:",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._redis = redis
        self._prefix = key_prefix
        self._clock = clock

    def _key(self, jti: str) -> str:
        return f"{self._prefix}{jti}"

    def _rotating_value(self, grace_seconds: int) -> str:
        return f"{_ROTATING}{self._clock() + grace_seconds:.3f}"

    async def mark_revoked(self, jti: str, ttl_seconds: int) -> None:
        await self._redis.set(self._key(jti), _REVOKED, ex=max(int(ttl_seconds), 1))

    async def mark_rotating(
        self, jti: str, grace_seconds: int, ttl_seconds: int
    ) -> None:
        await self._redis.set(
            self._key(jti),
            self._rotating_value(grace_seconds),
            ex=max(int(ttl_seconds), int(grace_seconds), 1),
        )

    async def claim_rotation(
        self, jti: str, grace_seconds: int, ttl_seconds: int
    ) -> bool:
        res = await self._redis.set(
            self._key(jti),
            self._rotating_value(grace_seconds),
            ex=max(int(ttl_seconds), int(grace_seconds), 1),
            nx=True,
        )
        return bool(res)

    async def status(self, jti: str) -> RevocationStatus:
        value = await self._redis.get(self._key(jti))
        if value is None:
            return RevocationStatus.LIVE
        if value.startswith(_ROTATING):
            try:
                deadline = float(value[len(_ROTATING) :])
            except ValueError:
                return RevocationStatus.REVOKED
            if self._clock() < deadline:
                return RevocationStatus.ROTATING
        return RevocationStatus.REVOKED
