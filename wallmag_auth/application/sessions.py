from __future__ import annotations

import logging
from typing import Callable, Optional

import wallmag_auth.application.delays as delays
import wallmag_auth.domain.services as domain_services
from wallmag_auth.application.guards import enforce_limit, ensure_unlocked
from wallmag_auth.application.policy import AuthPolicy
from wallmag_auth.application.session_rotation import SessionRotationController
from wallmag_auth.domain.entities import (
    Credential,
    IssuedToken,
    Purpose,
    RefreshResult,
)
from wallmag_auth.domain.errors import (
    InvalidCredentials,
    InvalidInput,
    Locked,
    Unauthorized,
)
from wallmag_auth.domain.ports.lockout import LockoutPort
from wallmag_auth.domain.ports.rate_limiter import RateLimiterPort
from wallmag_auth.domain.ports.security_events import SecurityEventsPort
from wallmag_auth.domain.ports.token_service import TokenServicePort
from wallmag_auth.domain.ports.unit_of_work import UnitOfWorkPort
from wallmag_auth.logging import mask_identifier

logger = logging.getLogger(__name__)

SESSION_COOKIES = ("session_token",)
LOGIN_FAILURE_SCOPE = "login"


async def login(
    uow: UnitOfWorkPort,
    limiter: RateLimiterPort,
    lockout: LockoutPort,
    tokens: TokenServicePort,
    events: SecurityEventsPort,
    policy: AuthPolicy,
    verify_password: Callable[[str, str], bool],
    id_number: Optional[str],
    password: Optional[str],
    ip: str,
) -> tuple[Credential, IssuedToken]:
    if not id_number or not password:
        raise InvalidInput("ID number and password are required")
    try:
        identifier = domain_services.normalize_identifier(id_number)
    except InvalidInput:
        raise InvalidInput("Invalid credentials")

    await ensure_unlocked(lockout, identifier)
    await enforce_limit(limiter, f"login:ip:{ip}", policy.login_ip)

    async with uow as tx:
        credential = await tx.users.get_credential(identifier)

    # unknown identifiers and wrong passwords take the same path
    if credential is None or not verify_password(password, credential.password_hash):
        status = await lockout.record_failure(
            identifier,
            LOGIN_FAILURE_SCOPE,
            policy.login_max_failures,
            policy.login_failure_window,
        )
        await events.record(
            "failed_login_attempt", ip=ip, identifier=identifier, attempt=status.failures
        )
        await delays.failure_delay()
        if status.locked:
            await events.record("account_locked", ip=ip, identifier=identifier)
            raise Locked(status.remaining_seconds)
        raise InvalidCredentials()

    await lockout.clear_failures(identifier, LOGIN_FAILURE_SCOPE)
    await limiter.reset(f"login:ip:{ip}")

    session = tokens.issue(
        identifier,
        Purpose.AUTHENTICATED_SESSION,
        policy.session_ttl,
        email=credential.email,
        role=credential.role,
    )
    logger.info("login succeeded", extra={"id_number": mask_identifier(identifier)})
    return credential, session


async def refresh_session(
    rotation: SessionRotationController, session_token: Optional[str]
) -> RefreshResult:
    if not session_token:
        raise Unauthorized("No session found")
    try:
        return await rotation.maybe_refresh(session_token)
    except Unauthorized:
        raise Unauthorized(clear_cookies=SESSION_COOKIES)


async def logout(
    tokens: TokenServicePort,
    rotation: SessionRotationController,
    session_token: Optional[str],
) -> None:
    """Always succeeds from the caller's view; a bad token is just dropped."""
    if not session_token:
        return
    try:
        claims = tokens.decode(session_token, Purpose.AUTHENTICATED_SESSION)
    except Unauthorized:
        logger.info("logout with unusable session token")
        return
    await rotation.revoke(claims)
    logger.info("logged out", extra={"id_number": mask_identifier(claims.sub)})
