from typing import Protocol

from wallmag_auth.domain.entities import (
    IssuedToken,
    Purpose,
    RevocationStatus,
    TokenClaims,
)


class TokenServicePort(Protocol):
    def now(self) -> int:
        """Current time in epoch seconds, from the service's clock."""

    def issue(
        self,
        identifier: str,
        purpose: Purpose,
        ttl_seconds: int,
        *,
        email: str | None = None,
        role: str | None = None,
    ) -> IssuedToken:
        """Sign a fresh token with a new jti."""

    def decode(self, token: str, expected_purpose: Purpose) -> TokenClaims:
        """Check signature, expiry and purpose; raise Unauthorized otherwise."""

    async def status(self, claims: TokenClaims) -> RevocationStatus:
        """Revocation state of the token's jti."""

    async def verify(self, token: str, expected_purpose: Purpose) -> TokenClaims:
        """decode() and reject hard-revoked tokens."""
