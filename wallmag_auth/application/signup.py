from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import wallmag_auth.application.delays as delays
import wallmag_auth.domain.services as domain_services
from wallmag_auth.application.guards import enforce_limit, ensure_unlocked
from wallmag_auth.application.otp_service import OtpService
from wallmag_auth.application.policy import AuthPolicy
from wallmag_auth.application.session_rotation import SessionRotationController
from wallmag_auth.domain.entities import Credential, IssuedToken, OtpFlow, Purpose
from wallmag_auth.domain.errors import (
    Forbidden,
    InvalidInput,
    Locked,
    RateLimited,
    Unauthorized,
)
from wallmag_auth.domain.ports.csrf_store import CsrfStorePort
from wallmag_auth.domain.ports.lockout import LockoutPort
from wallmag_auth.domain.ports.rate_limiter import RateLimiterPort
from wallmag_auth.domain.ports.security_events import SecurityEventsPort
from wallmag_auth.domain.ports.token_service import TokenServicePort
from wallmag_auth.domain.ports.unit_of_work import UnitOfWorkPort
from wallmag_auth.logging import mask_identifier

logger = logging.getLogger(__name__)

SIGNUP_COOKIES = ("signup_token", "otp_csrf_token")
PROFILE_COOKIES = ("profile_token",)

SIGNUP_REJECTED = "Invalid request or user already registered"


@dataclass(frozen=True)
class SignupStarted:
    signup_token: IssuedToken
    csrf_token: str
    expires_in: int


async def request_signup(
    uow: UnitOfWorkPort,
    limiter: RateLimiterPort,
    lockout: LockoutPort,
    otp: OtpService,
    tokens: TokenServicePort,
    csrf: CsrfStorePort,
    policy: AuthPolicy,
    id_number: Optional[str],
    ip: str,
) -> SignupStarted:
    identifier = domain_services.normalize_identifier(id_number)

    await enforce_limit(limiter, f"signup:ip:{ip}", policy.signup_ip)
    await enforce_limit(limiter, f"signup:id:{identifier}", policy.signup_id)

    if not await limiter.acquire_slot(f"signup:lock:{identifier}", policy.signup_lock_seconds):
        raise RateLimited("Request in progress. Please try again later")

    await ensure_unlocked(lockout, identifier)

    async with uow as tx:
        registered = await tx.users.get_registered(identifier)
        credential = await tx.users.get_credential(identifier)

    if registered is None or registered.is_signed_up or credential is not None:
        await delays.enumeration_delay()
        logger.info("signup rejected", extra={"id_number": mask_identifier(identifier)})
        raise InvalidInput(SIGNUP_REJECTED)

    await enforce_limit(
        limiter,
        f"otp:resend:{identifier}",
        policy.otp_resend,
        "Too many OTP requests. Try again tomorrow",
    )

    await otp.issue(
        identifier, email=registered.email, name=registered.name, flow=OtpFlow.SIGNUP
    )

    signup_token = tokens.issue(identifier, Purpose.OTP_VERIFICATION, policy.signup_token_ttl)
    csrf_token = domain_services.generate_csrf_token()
    await csrf.put(identifier, csrf_token, policy.csrf_ttl)

    logger.info("signup started", extra={"id_number": mask_identifier(identifier)})
    return SignupStarted(
        signup_token=signup_token, csrf_token=csrf_token, expires_in=otp.ttl_seconds
    )


async def verify_signup_otp(
    limiter: RateLimiterPort,
    lockout: LockoutPort,
    otp: OtpService,
    tokens: TokenServicePort,
    rotation: SessionRotationController,
    csrf: CsrfStorePort,
    events: SecurityEventsPort,
    policy: AuthPolicy,
    signup_token: Optional[str],
    csrf_cookie: Optional[str],
    csrf_submitted: Optional[str],
    code: Optional[str],
    ip: str,
) -> IssuedToken:
    """Second stage: the signup token plus the emailed code buy a profile token."""
    if (
        not csrf_cookie
        or not csrf_submitted
        or not domain_services.secure_compare(csrf_cookie, csrf_submitted)
    ):
        await events.record("csrf_validation_failed", ip=ip)
        raise Forbidden()

    if not signup_token:
        raise Unauthorized("Session expired. Please restart signup")
    try:
        claims = await tokens.verify(signup_token, Purpose.OTP_VERIFICATION)
    except Unauthorized:
        raise Unauthorized(
            "Invalid session. Please restart signup", clear_cookies=SIGNUP_COOKIES
        )
    identifier = claims.sub

    async def abort() -> None:
        await rotation.revoke(claims)
        await csrf.delete(identifier)
        await otp.consume(identifier, OtpFlow.SIGNUP)

    try:
        await ensure_unlocked(lockout, identifier, clear_cookies=SIGNUP_COOKIES)
    except Locked:
        await events.record("account_locked", ip=ip, identifier=identifier)
        await abort()
        raise

    stored = await csrf.get(identifier)
    if not stored or not domain_services.secure_compare(stored, csrf_submitted):
        await events.record("csrf_validation_failed", ip=ip, identifier=identifier)
        raise Forbidden()

    domain_services.check_otp_format(code)

    await enforce_limit(limiter, f"verify:ip:{ip}", policy.verify_ip)
    await enforce_limit(limiter, f"verify:id:{identifier}", policy.verify_id)

    try:
        await otp.verify(identifier, code, flow=OtpFlow.SIGNUP)
    except Locked as exc:
        await events.record("account_locked", ip=ip, identifier=identifier)
        await abort()
        raise Locked(exc.remaining_seconds, clear_cookies=SIGNUP_COOKIES)
    except InvalidInput:
        await events.record("failed_otp_attempt", ip=ip, identifier=identifier)
        raise

    await limiter.reset(f"verify:ip:{ip}", f"verify:id:{identifier}")
    await rotation.revoke(claims)
    await csrf.delete(identifier)

    logger.info("signup otp verified", extra={"id_number": mask_identifier(identifier)})
    return tokens.issue(identifier, Purpose.PROFILE_CREATION, policy.profile_token_ttl)


async def create_profile(
    uow: UnitOfWorkPort,
    limiter: RateLimiterPort,
    otp: OtpService,
    tokens: TokenServicePort,
    rotation: SessionRotationController,
    policy: AuthPolicy,
    hash_password: Callable[..., str],
    profile_token: Optional[str],
    password: Optional[str],
    confirm_password: Optional[str],
    ip: str,
) -> tuple[Credential, IssuedToken]:
    if not profile_token:
        raise Unauthorized("Session expired. Please restart signup")
    try:
        claims = await tokens.verify(profile_token, Purpose.PROFILE_CREATION)
    except Unauthorized:
        raise Unauthorized(
            "Invalid session. Please restart signup", clear_cookies=PROFILE_COOKIES
        )
    identifier = claims.sub

    domain_services.check_password_policy(password, confirm_password)
    await enforce_limit(limiter, f"profile:ip:{ip}", policy.profile_ip)
    await otp.require_verified(identifier, OtpFlow.SIGNUP)

    async with uow as tx:
        registered = await tx.users.get_registered(identifier)
        if registered is None or registered.is_signed_up:
            raise InvalidInput(SIGNUP_REJECTED, clear_cookies=PROFILE_COOKIES)
        credential = await tx.users.create_credential(
            Credential(
                id_number=registered.id_number,
                name=registered.name,
                email=registered.email,
                password_hash=hash_password(password),
                role=registered.role,
            )
        )
        await tx.users.mark_signed_up(identifier)
        await tx.commit()

    await otp.consume(identifier, OtpFlow.SIGNUP)
    await limiter.reset(f"otp:resend:{identifier}")
    await rotation.revoke(claims)

    session = tokens.issue(
        identifier,
        Purpose.AUTHENTICATED_SESSION,
        policy.session_ttl,
        email=credential.email,
        role=credential.role,
    )
    logger.info("profile created", extra={"id_number": mask_identifier(identifier)})
    return credential, session
