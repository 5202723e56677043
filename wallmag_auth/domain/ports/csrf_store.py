from typing import Optional, Protocol


class CsrfStorePort(Protocol):
    async def put(self, identifier: str, token: str, ttl_seconds: int) -> None:
        """Store the CSRF value bound to an identifier's OTP step."""

    async def get(self, identifier: str) -> Optional[str]:
        """Return the stored value or None."""

    async def delete(self, identifier: str) -> None:
        """Forget the value."""
