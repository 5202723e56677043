from __future__ import annotations

from typing import Optional, Protocol

from wallmag_auth.domain.entities import Credential, RegisteredUser


class UserRepositoryPort(Protocol):
    async def get_registered(self, id_number: str) -> Optional[RegisteredUser]:
        """Roster entry for an identifier, or None."""

    async def get_credential(self, id_number: str) -> Optional[Credential]:
        """Credential record for an identifier, or None."""

    async def create_credential(self, credential: Credential) -> Credential:
        """
        Insert the credential record. The store's uniqueness constraint is the
        guard against concurrent profile creation: raise
        CredentialAlreadyExists when a record for the identifier exists.
        """

    async def mark_signed_up(self, id_number: str) -> None:
        """Flag the roster entry as signed up."""

    async def update_password_hash(self, id_number: str, password_hash: str) -> bool:
        """Replace the password hash. False when no credential exists."""

    async def enable_two_factor(
        self, id_number: str, backup_code_hashes: list[str]
    ) -> bool:
        """
        Turn 2FA on and store the backup code hashes, only if it was off.
        False when already enabled or missing.
        """

    async def disable_two_factor(self, id_number: str) -> bool:
        """Turn 2FA off and clear the backup codes. False when it was not on."""
