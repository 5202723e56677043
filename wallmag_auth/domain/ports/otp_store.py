from typing import Optional, Protocol

from wallmag_auth.domain.entities import OtpFlow, OtpRecord


class OtpStorePort(Protocol):
    async def replace(
        self, identifier: str, flow: OtpFlow, code_hash: str, ttl_seconds: int
    ) -> None:
        """Store {hash, verified=false}, superseding any live record."""

    async def get(self, identifier: str, flow: OtpFlow) -> Optional[OtpRecord]:
        """Return the live record, or None when absent or expired."""

    async def mark_verified(self, identifier: str, flow: OtpFlow) -> bool:
        """Flip verified=true only if the record still exists."""

    async def delete(self, identifier: str, flow: OtpFlow) -> None:
        """Remove the record (completion, purge or failed delivery)."""
