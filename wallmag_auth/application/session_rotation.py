from __future__ import annotations

import logging

from wallmag_auth.domain.entities import (
    Purpose,
    RefreshResult,
    RevocationStatus,
    TokenClaims,
)
from wallmag_auth.domain.errors import Unauthorized
from wallmag_auth.domain.ports.revocation_store import RevocationStorePort
from wallmag_auth.domain.ports.token_service import TokenServicePort
from wallmag_auth.logging import mask_identifier

logger = logging.getLogger(__name__)


class SessionRotationController:
    """
    Sole writer of revocation entries.

    Session tokens close to expiry are swapped for fresh ones. The old jti is
    claimed atomically as Rotating, so concurrent requests carrying the same
    token produce exactly one successor while the others keep working
    through the grace window.
    """

    def __init__(
        self,
        tokens: TokenServicePort,
        revocations: RevocationStorePort,
        *,
        session_ttl_seconds: int,
        threshold: float = 0.25,
        grace_seconds: int = 15,
    ) -> None:
        self._tokens = tokens
        self._revocations = revocations
        self._session_ttl = session_ttl_seconds
        self._threshold = threshold
        self._grace = grace_seconds

    async def maybe_refresh(self, token: str) -> RefreshResult:
        claims = self._tokens.decode(token, Purpose.AUTHENTICATED_SESSION)
        status = await self._tokens.status(claims)
        if status is RevocationStatus.REVOKED:
            raise Unauthorized()

        remaining = claims.time_until_expiry(self._tokens.now())
        if remaining > self._threshold * claims.lifetime:
            return RefreshResult(refreshed=False, expires_in=remaining, claims=claims)

        if status is RevocationStatus.ROTATING:
            # someone else already rotated this token
            return RefreshResult(refreshed=False, expires_in=remaining, claims=claims)

        if not await self._revocations.claim_rotation(claims.jti, self._grace, remaining):
            return RefreshResult(refreshed=False, expires_in=remaining, claims=claims)

        issued = self._tokens.issue(
            claims.sub,
            Purpose.AUTHENTICATED_SESSION,
            self._session_ttl,
            email=claims.email,
            role=claims.role,
        )
        logger.info(
            "session rotated",
            extra={"id_number": mask_identifier(claims.sub), "old_jti": claims.jti},
        )
        return RefreshResult(
            refreshed=True,
            expires_in=self._session_ttl,
            claims=issued.claims,
            token=issued.token,
        )

    async def revoke(self, claims: TokenClaims) -> None:
        """Hard revoke for the rest of the token's natural lifetime."""
        remaining = claims.time_until_expiry(self._tokens.now())
        if remaining > 0:
            await self._revocations.mark_revoked(claims.jti, remaining)
