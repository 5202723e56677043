from typing import Optional, Protocol


class SecurityEventsPort(Protocol):
    async def record(
        self,
        event_type: str,
        *,
        ip: Optional[str] = None,
        identifier: Optional[str] = None,
        attempt: Optional[int] = None,
    ) -> None:
        """Best-effort telemetry; must never raise."""

    async def is_ip_blocked(self, ip: str) -> bool:
        """True when the IP is on the block list."""

    async def block_ip(self, ip: str, duration_seconds: int = 86400) -> None:
        """Put the IP on the block list for a while."""

    async def unblock_ip(self, ip: str) -> None:
        """Take the IP off the block list."""
