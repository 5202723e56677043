from typing import Protocol

from wallmag_auth.domain.entities import RevocationStatus


class RevocationStorePort(Protocol):
    async def mark_revoked(self, jti: str, ttl_seconds: int) -> None:
        """Hard revoke; ttl must cover the token's remaining lifetime."""

    async def mark_rotating(
        self, jti: str, grace_seconds: int, ttl_seconds: int
    ) -> None:
        """Soft revoke: still valid for `grace_seconds`, revoked afterwards."""

    async def claim_rotation(
        self, jti: str, grace_seconds: int, ttl_seconds: int
    ) -> bool:
        """Atomic mark_rotating that only succeeds for a live jti."""

    async def status(self, jti: str) -> RevocationStatus:
        """Live, Rotating or Revoked."""
