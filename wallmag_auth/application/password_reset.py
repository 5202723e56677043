from __future__ import annotations

import logging
from typing import Callable, Optional

import wallmag_auth.application.delays as delays
import wallmag_auth.domain.services as domain_services
from wallmag_auth.application.guards import enforce_limit, ensure_unlocked
from wallmag_auth.application.otp_service import OtpService
from wallmag_auth.application.policy import AuthPolicy
from wallmag_auth.application.session_rotation import SessionRotationController
from wallmag_auth.domain.entities import IssuedToken, OtpFlow, Purpose
from wallmag_auth.domain.errors import InvalidInput, Locked, Unauthorized
from wallmag_auth.domain.ports.lockout import LockoutPort
from wallmag_auth.domain.ports.rate_limiter import RateLimiterPort
from wallmag_auth.domain.ports.security_events import SecurityEventsPort
from wallmag_auth.domain.ports.token_service import TokenServicePort
from wallmag_auth.domain.ports.unit_of_work import UnitOfWorkPort
from wallmag_auth.logging import mask_identifier

logger = logging.getLogger(__name__)

RESET_COOKIES = ("reset_token",)


async def request_password_reset(
    uow: UnitOfWorkPort,
    limiter: RateLimiterPort,
    otp: OtpService,
    tokens: TokenServicePort,
    policy: AuthPolicy,
    id_number: Optional[str],
    ip: str,
) -> IssuedToken:
    """
    Answer identically whether or not a credential exists: a reset token is
    always handed out and a code record always exists, but a code is only
    sent to real accounts.
    """
    identifier = domain_services.normalize_identifier(id_number)

    await enforce_limit(limiter, f"reset:ip:{ip}", policy.reset_request_ip)
    await enforce_limit(limiter, f"reset:id:{identifier}", policy.reset_request_id)

    async with uow as tx:
        credential = await tx.users.get_credential(identifier)

    if credential is None:
        await otp.issue_decoy(identifier, flow=OtpFlow.RESET)
        await delays.enumeration_delay()
        logger.info(
            "reset requested for unknown id",
            extra={"id_number": mask_identifier(identifier)},
        )
    else:
        await otp.issue(
            identifier, email=credential.email, name=credential.name, flow=OtpFlow.RESET
        )

    return tokens.issue(identifier, Purpose.PASSWORD_RESET, policy.reset_token_ttl)


async def reset_password(
    uow: UnitOfWorkPort,
    limiter: RateLimiterPort,
    lockout: LockoutPort,
    otp: OtpService,
    tokens: TokenServicePort,
    rotation: SessionRotationController,
    events: SecurityEventsPort,
    policy: AuthPolicy,
    hash_password: Callable[..., str],
    reset_token: Optional[str],
    code: Optional[str],
    password: Optional[str],
    confirm_password: Optional[str],
    ip: str,
) -> None:
    if not reset_token:
        raise Unauthorized("Session expired. Please request a new code")
    try:
        claims = await tokens.verify(reset_token, Purpose.PASSWORD_RESET)
    except Unauthorized:
        raise Unauthorized(
            "Invalid session. Please request a new code", clear_cookies=RESET_COOKIES
        )
    identifier = claims.sub

    domain_services.check_otp_format(code)
    domain_services.check_password_policy(password, confirm_password)
    await enforce_limit(limiter, f"reset:confirm:ip:{ip}", policy.reset_confirm_ip)
    try:
        await ensure_unlocked(lockout, identifier, clear_cookies=RESET_COOKIES)
    except Locked:
        await events.record("account_locked", ip=ip, identifier=identifier)
        await rotation.revoke(claims)
        raise

    try:
        await otp.verify(identifier, code, flow=OtpFlow.RESET)
    except Locked as exc:
        await events.record("account_locked", ip=ip, identifier=identifier)
        await rotation.revoke(claims)
        raise Locked(exc.remaining_seconds, clear_cookies=RESET_COOKIES)
    except InvalidInput:
        await events.record("failed_otp_attempt", ip=ip, identifier=identifier)
        raise

    async with uow as tx:
        updated = await tx.users.update_password_hash(identifier, hash_password(password))
        if not updated:
            raise InvalidInput(clear_cookies=RESET_COOKIES)
        await tx.commit()

    await otp.consume(identifier, OtpFlow.RESET)
    await rotation.revoke(claims)
    logger.info("password reset", extra={"id_number": mask_identifier(identifier)})
