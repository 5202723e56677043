from typing import Protocol

from wallmag_auth.domain.entities import LockStatus


class LockoutPort(Protocol):
    async def check_locked(self, identifier: str) -> LockStatus:
        """Current lock flag and its remaining TTL."""

    async def record_failure(
        self, identifier: str, scope: str, threshold: int, window_seconds: int
    ) -> LockStatus:
        """
        Count one failure in `scope`. Reaching `threshold` inside the window
        sets the lock flag and clears the counter; the returned status
        reports whether the identifier is locked now.
        """

    async def clear_failures(self, identifier: str, scope: str) -> None:
        """Reset the failure counter after a success."""
