"""Cache outage policy: counters and locks fail closed, telemetry fails open."""

import pytest

from wallmag_auth.domain.errors import DependencyUnavailable
from wallmag_auth.infrastructure.redis_cache.lockout import RedisLockout
from wallmag_auth.infrastructure.redis_cache.rate_limiter import RedisRateLimiter
from wallmag_auth.infrastructure.redis_cache.security_events import RedisSecurityEvents
from tests.fakes import DownRedis


async def test_rate_limiter_blocks_when_cache_is_down():
    limiter = RedisRateLimiter(DownRedis())
    result = await limiter.increment_and_check("signup:ip:1.2.3.4", 30, 3600)
    assert result.blocked is True
    assert result.retry_after == 3600
    assert await limiter.acquire_slot("signup:lock:STU-1001", 8) is False


async def test_lock_check_refuses_when_cache_is_down():
    lockout = RedisLockout(DownRedis())
    with pytest.raises(DependencyUnavailable):
        await lockout.check_locked("STU-1001")
    with pytest.raises(DependencyUnavailable):
        await lockout.record_failure("STU-1001", "login", 5, 900)


async def test_security_events_never_raise():
    events = RedisSecurityEvents(DownRedis())
    await events.record("failed_login_attempt", ip="1.2.3.4", identifier="STU-1001")
    assert await events.is_ip_blocked("1.2.3.4") is False
