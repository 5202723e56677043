from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

from wallmag_auth.domain.entities import OtpFlow, OtpRecord
from wallmag_auth.domain.ports.otp_store import OtpStorePort


_LUA_MARK_VERIFIED = """
-- KEYS[1]: otp key
if redis.call('EXISTS', KEYS[1]) == 0 then
  return 0
end
redis.call('HSET', KEYS[1], 'verified', 'true')
return 1
"""


class RedisOtpStore(OtpStorePort):
    def __init__(self, redis: Redis, *, key_prefix: str = "otp:") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _key(self, identifier: str, flow: OtpFlow) -> str:
        return f"{self._prefix}{flow.value}:{identifier}"

    async def replace(
        self, identifier: str, flow: OtpFlow, code_hash: str, ttl_seconds: int
    ) -> None:
        key = self._key(identifier, flow)
        pipe = self._redis.pipeline(transaction=True)
        pipe.delete(key)
        pipe.hset(key, mapping={"hash": code_hash, "verified": "false"})
        pipe.expire(key, ttl_seconds)
        await pipe.execute()

    async def get(self, identifier: str, flow: OtpFlow) -> Optional[OtpRecord]:
        stored = await self._redis.hgetall(self._key(identifier, flow))
        if not stored or not stored.get("hash"):
            return None
        return OtpRecord(hash=stored["hash"], verified=stored.get("verified") == "true")

    async def mark_verified(self, identifier: str, flow: OtpFlow) -> bool:
        res = await self._redis.eval(_LUA_MARK_VERIFIED, 1, self._key(identifier, flow))
        return int(res) == 1

    async def delete(self, identifier: str, flow: OtpFlow) -> None:
        await self._redis.delete(self._key(identifier, flow))
