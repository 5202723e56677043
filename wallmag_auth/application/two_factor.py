from __future__ import annotations

import logging
from typing import Callable, Optional

import wallmag_auth.domain.services as domain_services
from wallmag_auth.domain.entities import TokenClaims
from wallmag_auth.domain.errors import InvalidInput, NotFound, Unauthorized
from wallmag_auth.domain.ports.email_port import EmailPort
from wallmag_auth.domain.ports.unit_of_work import UnitOfWorkPort
from wallmag_auth.logging import mask_identifier

logger = logging.getLogger(__name__)

BACKUP_CODE_COUNT = 10


async def enable_two_factor(
    uow: UnitOfWorkPort,
    email: EmailPort,
    hash_code: Callable[[str], str],
    session: TokenClaims,
) -> list[str]:
    """Turn on 2FA and return the plaintext backup codes, shown exactly once."""
    codes = domain_services.generate_backup_codes(BACKUP_CODE_COUNT)
    hashes = [hash_code(code) for code in codes]

    async with uow as tx:
        credential = await tx.users.get_credential(session.sub)
        if credential is None:
            raise NotFound("User not found")
        if not await tx.users.enable_two_factor(session.sub, hashes):
            raise InvalidInput("2FA already enabled")
        await tx.commit()

    try:
        await email.send(
            to=credential.email,
            subject="Wall-Magazine: two-factor authentication enabled",
            body=(
                f"Hello {credential.name},\n\n"
                "Two-factor authentication is now on for your account. "
                "Keep your backup codes somewhere safe."
            ),
        )
    except RuntimeError:
        # the codes are already in the response; the notice is best effort
        logger.warning(
            "2fa notice not delivered",
            extra={"id_number": mask_identifier(session.sub)},
        )

    logger.info("2fa enabled", extra={"id_number": mask_identifier(session.sub)})
    return codes


async def disable_two_factor(
    uow: UnitOfWorkPort,
    verify_password: Callable[[str, str], bool],
    session: TokenClaims,
    password: Optional[str],
) -> None:
    """Turning 2FA off needs the account password; backup codes are dropped."""
    if not password:
        raise InvalidInput("Password required")

    async with uow as tx:
        credential = await tx.users.get_credential(session.sub)
        if credential is None:
            raise NotFound("User not found")
        if not verify_password(password, credential.password_hash):
            raise Unauthorized("Invalid password")
        if not await tx.users.disable_two_factor(session.sub):
            raise InvalidInput("2FA is not enabled")
        await tx.commit()

    logger.info("2fa disabled", extra={"id_number": mask_identifier(session.sub)})
