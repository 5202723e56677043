from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

from wallmag_auth.domain.ports.csrf_store import CsrfStorePort


class RedisCsrfStore(CsrfStorePort):
    def __init__(self, redis: Redis, *, key_prefix: str = "otp:csrf:") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _key(self, identifier: str) -> str:
        return f"{self._prefix}{identifier}"

    async def put(self, identifier: str, token: str, ttl_seconds: int) -> None:
        await self._redis.set(self._key(identifier), token, ex=ttl_seconds)

    async def get(self, identifier: str) -> Optional[str]:
        return await self._redis.get(self._key(identifier))

    async def delete(self, identifier: str) -> None:
        await self._redis.delete(self._key(identifier))
