from __future__ import annotations

from typing import Sequence

from wallmag_auth.application.policy import Limit
from wallmag_auth.domain.errors import Locked, RateLimited
from wallmag_auth.domain.ports.lockout import LockoutPort
from wallmag_auth.domain.ports.rate_limiter import RateLimiterPort


async def enforce_limit(
    limiter: RateLimiterPort,
    key: str,
    limit: Limit,
    message: str | None = None,
) -> None:
    result = await limiter.increment_and_check(key, limit.requests, limit.window_seconds)
    if result.blocked:
        raise RateLimited(message, retry_after=result.retry_after)


async def ensure_unlocked(
    lockout: LockoutPort, identifier: str, *, clear_cookies: Sequence[str] = ()
) -> None:
    """Consulted before any credential check; same answer for unknown ids."""
    status = await lockout.check_locked(identifier)
    if status.locked:
        raise Locked(status.remaining_seconds, clear_cookies=clear_cookies)
