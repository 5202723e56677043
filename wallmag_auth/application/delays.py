from __future__ import annotations

import asyncio
import secrets

_rng = secrets.SystemRandom()

FAILURE_DELAY = (0.1, 0.2)
ENUMERATION_DELAY = (0.3, 0.5)


async def failure_delay() -> None:
    """Blur the timing of a failed check."""
    await asyncio.sleep(_rng.uniform(*FAILURE_DELAY))


async def enumeration_delay() -> None:
    """Stand-in for the work a known identifier would have triggered."""
    await asyncio.sleep(_rng.uniform(*ENUMERATION_DELAY))
