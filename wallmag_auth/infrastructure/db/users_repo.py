from __future__ import annotations

from typing import Optional

import psycopg

from wallmag_auth.domain.entities import Credential, RegisteredUser
from wallmag_auth.domain.errors import CredentialAlreadyExists
from wallmag_auth.domain.ports.user_repository import UserRepositoryPort

_CREDENTIAL_COLUMNS = """
    id_number, name, email, password_hash, role,
    two_factor_enabled, backup_code_hashes, created_at
"""


def _credential_from_row(row: tuple) -> Credential:
    (
        id_number,
        name,
        email,
        password_hash,
        role,
        two_factor_enabled,
        backup_code_hashes,
        created_at,
    ) = row
    return Credential(
        id_number=str(id_number),
        name=str(name),
        email=str(email),
        password_hash=str(password_hash),
        role=str(role),
        two_factor_enabled=bool(two_factor_enabled),
        backup_code_hashes=list(backup_code_hashes or []),
        created_at=created_at,
    )


class PgUserRepository(UserRepositoryPort):
    """
    Postgres implementation of UserRepositoryPort.

    NOTE:
    - Constructed with an *active async connection* supplied by the UoW.
    - It does not commit; the UnitOfWork controls the transaction boundary.
    - credentials.id_number is the primary key: the database, not this
      class, decides which of two concurrent profile creations wins.
    """

    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    async def get_registered(self, id_number: str) -> Optional[RegisteredUser]:
        sql = """
        SELECT id_number, name, email, role, is_signed_up
        FROM registered_users
        WHERE id_number = %s
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (id_number,))
            row = await cur.fetchone()
        if not row:
            return None
        id_, name, email, role, is_signed_up = row
        return RegisteredUser(
            id_number=str(id_),
            name=str(name),
            email=str(email),
            role=str(role),
            is_signed_up=bool(is_signed_up),
        )

    async def get_credential(self, id_number: str) -> Optional[Credential]:
        sql = f"SELECT {_CREDENTIAL_COLUMNS} FROM credentials WHERE id_number = %s"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (id_number,))
            row = await cur.fetchone()
        return _credential_from_row(row) if row else None

    async def create_credential(self, credential: Credential) -> Credential:
        sql = f"""
        INSERT INTO credentials (
            id_number, name, email, password_hash, role,
            two_factor_enabled, backup_code_hashes
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        ON CONFLICT (id_number) DO NOTHING
        RETURNING {_CREDENTIAL_COLUMNS}
        """
        async with self._conn.cursor() as cur:
            await cur.execute(
                sql,
                (
                    credential.id_number,
                    credential.name,
                    credential.email,
                    credential.password_hash,
                    credential.role,
                    credential.two_factor_enabled,
                    credential.backup_code_hashes,
                ),
            )
            row = await cur.fetchone()
        if not row:
            raise CredentialAlreadyExists()
        return _credential_from_row(row)

    async def mark_signed_up(self, id_number: str) -> None:
        sql = "UPDATE registered_users SET is_signed_up = TRUE WHERE id_number = %s"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (id_number,))

    async def update_password_hash(self, id_number: str, password_hash: str) -> bool:
        sql = """
        UPDATE credentials
        SET password_hash = %s, updated_at = now()
        WHERE id_number = %s
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (password_hash, id_number))
            return cur.rowcount == 1

    async def enable_two_factor(
        self, id_number: str, backup_code_hashes: list[str]
    ) -> bool:
        sql = """
        UPDATE credentials
        SET two_factor_enabled = TRUE,
            backup_code_hashes = %s,
            updated_at = now()
        WHERE id_number = %s AND two_factor_enabled = FALSE
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (backup_code_hashes, id_number))
            return cur.rowcount == 1

    async def disable_two_factor(self, id_number: str) -> bool:
        sql = """
        UPDATE credentials
        SET two_factor_enabled = FALSE,
            backup_code_hashes = '{}',
            updated_at = now()
        WHERE id_number = %s AND two_factor_enabled = TRUE
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (id_number,))
            return cur.rowcount == 1
