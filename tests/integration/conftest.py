import os
import uuid

import pytest
import pytest_asyncio
from redis.asyncio import Redis
from redis.exceptions import RedisError

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")


@pytest_asyncio.fixture
async def redis_client():
    r = Redis.from_url(
        REDIS_URL, encoding="utf-8", decode_responses=True, socket_connect_timeout=1.0
    )
    try:
        await r.ping()
    except (RedisError, OSError):
        await r.aclose()
        pytest.skip(f"redis not reachable at {REDIS_URL}")
    try:
        yield r
    finally:
        await r.aclose()


@pytest.fixture()
def prefix():
    """Unique key namespace per test so runs never collide."""
    return f"it:{uuid.uuid4().hex[:8]}:"
