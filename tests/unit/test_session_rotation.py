import asyncio

import pytest

from wallmag_auth.domain.entities import Purpose, RevocationStatus
from wallmag_auth.domain.errors import Unauthorized

WEEK = 7 * 24 * 3600


def _session(tokens):
    return tokens.issue(
        "STU-1001",
        Purpose.AUTHENTICATED_SESSION,
        WEEK,
        email="ada@school.test",
        role="student",
    )


async def test_no_rotation_while_plenty_of_time_left(tokens, rotation, clock):
    issued = _session(tokens)
    clock.advance(WEEK * 0.5)
    result = await rotation.maybe_refresh(issued.token)
    assert result.refreshed is False
    assert result.token is None
    assert result.expires_in == pytest.approx(WEEK * 0.5, abs=1)


async def test_rotation_near_expiry(tokens, rotation, revocations, clock):
    issued = _session(tokens)
    clock.advance(WEEK * 0.8)

    result = await rotation.maybe_refresh(issued.token)

    assert result.refreshed is True
    assert result.expires_in == WEEK
    assert result.claims.jti != issued.claims.jti
    assert result.claims.email == "ada@school.test"
    assert result.claims.role == "student"
    await tokens.verify(result.token, Purpose.AUTHENTICATED_SESSION)

    # the old token is in its grace window, then gone
    assert await revocations.status(issued.claims.jti) is RevocationStatus.ROTATING
    clock.advance(16)
    assert await revocations.status(issued.claims.jti) is RevocationStatus.REVOKED


async def test_concurrent_refresh_yields_one_successor(tokens, rotation, revocations, clock):
    issued = _session(tokens)
    clock.advance(WEEK * 0.9)

    first, second = await asyncio.gather(
        rotation.maybe_refresh(issued.token),
        rotation.maybe_refresh(issued.token),
    )

    assert sorted([first.refreshed, second.refreshed]) == [False, True]
    assert revocations.claims == [issued.claims.jti]

    # within the grace window the old token still refreshes as a no-op
    third = await rotation.maybe_refresh(issued.token)
    assert third.refreshed is False


async def test_revoked_session_is_rejected(tokens, rotation, clock):
    issued = _session(tokens)
    await rotation.revoke(issued.claims)
    with pytest.raises(Unauthorized):
        await rotation.maybe_refresh(issued.token)


async def test_wrong_purpose_is_rejected(tokens, rotation):
    issued = tokens.issue("STU-1001", Purpose.PROFILE_CREATION, 600)
    with pytest.raises(Unauthorized):
        await rotation.maybe_refresh(issued.token)


async def test_revoke_covers_remaining_lifetime(tokens, rotation, revocations, clock):
    issued = tokens.issue("STU-1001", Purpose.OTP_VERIFICATION, 600)
    clock.advance(100)
    await rotation.revoke(issued.claims)
    assert await revocations.status(issued.claims.jti) is RevocationStatus.REVOKED
    clock.advance(499)
    assert await revocations.status(issued.claims.jti) is RevocationStatus.REVOKED
