from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

from wallmag_auth.settings import get_settings

_client: Optional[Redis] = None


def get_redis() -> Redis:
    """
    Lazy process-wide Redis client using REDIS_URL from settings.
    Handed to the adapters through the presentation dependencies, never
    imported by them directly.
    """
    global _client
    if _client is None:
        _client = Redis.from_url(
            get_settings().redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=2.0,
            socket_connect_timeout=2.0,
        )
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
