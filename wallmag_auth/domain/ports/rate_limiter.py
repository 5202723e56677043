from typing import Protocol

from wallmag_auth.domain.entities import RateLimitResult


class RateLimiterPort(Protocol):
    async def increment_and_check(
        self, key: str, limit: int, window_seconds: int
    ) -> RateLimitResult:
        """
        Atomically bump the counter for `key`, starting its window on the
        first hit. blocked is True once count exceeds `limit`, and also when
        the cache cannot be reached.
        """

    async def reset(self, *keys: str) -> None:
        """Drop counters after a successful attempt."""

    async def acquire_slot(self, key: str, ttl_seconds: int) -> bool:
        """Set-if-absent guard; True only for the caller that took the slot."""
