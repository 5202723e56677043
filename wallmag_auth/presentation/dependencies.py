from typing import Annotated, Callable

from fastapi import Depends, Request

from wallmag_auth.application.otp_service import OtpService
from wallmag_auth.application.policy import AuthPolicy
from wallmag_auth.application.session_rotation import SessionRotationController
from wallmag_auth.domain.entities import Purpose, TokenClaims
from wallmag_auth.domain.errors import Unauthorized
from wallmag_auth.domain.permissions import Permission, authorize
from wallmag_auth.domain.ports.csrf_store import CsrfStorePort
from wallmag_auth.domain.ports.email_port import EmailPort
from wallmag_auth.domain.ports.lockout import LockoutPort
from wallmag_auth.domain.ports.otp_store import OtpStorePort
from wallmag_auth.domain.ports.rate_limiter import RateLimiterPort
from wallmag_auth.domain.ports.revocation_store import RevocationStorePort
from wallmag_auth.domain.ports.security_events import SecurityEventsPort
from wallmag_auth.domain.ports.token_service import TokenServicePort
from wallmag_auth.domain.ports.unit_of_work import UnitOfWorkPort
from wallmag_auth.infrastructure.db.pool import get_pool
from wallmag_auth.infrastructure.db.uow import PgUnitOfWork
from wallmag_auth.infrastructure.redis_cache.csrf_store import RedisCsrfStore
from wallmag_auth.infrastructure.redis_cache.lockout import RedisLockout
from wallmag_auth.infrastructure.redis_cache.otp_store import RedisOtpStore
from wallmag_auth.infrastructure.redis_cache.pool import get_redis
from wallmag_auth.infrastructure.redis_cache.rate_limiter import RedisRateLimiter
from wallmag_auth.infrastructure.redis_cache.revocation_store import RedisRevocationStore
from wallmag_auth.infrastructure.redis_cache.security_events import RedisSecurityEvents
from wallmag_auth.infrastructure.security.password import (
    hash_code,
    hash_password,
    verify_code,
    verify_password,
)
from wallmag_auth.infrastructure.security.tokens import JwtTokenService
from wallmag_auth.settings import get_settings


def get_uow() -> UnitOfWorkPort:
    return PgUnitOfWork(get_pool())


def get_policy() -> AuthPolicy:
    return AuthPolicy.from_settings(get_settings())


def get_rate_limiter() -> RateLimiterPort:
    return RedisRateLimiter(get_redis())


def get_lockout() -> LockoutPort:
    return RedisLockout(get_redis(), lock_seconds=get_settings().lock_seconds)


def get_csrf_store() -> CsrfStorePort:
    return RedisCsrfStore(get_redis())


def get_otp_store() -> OtpStorePort:
    return RedisOtpStore(get_redis())


def get_revocation_store() -> RevocationStorePort:
    return RedisRevocationStore(get_redis())


def get_security_events() -> SecurityEventsPort:
    return RedisSecurityEvents(get_redis())


def get_email_port(request: Request) -> EmailPort:
    # This is set in wallmag_auth.main lifespan()
    return request.app.state.email_adapter


def get_hash_password() -> Callable[..., str]:
    return hash_password


def get_verify_password() -> Callable[[str, str], bool]:
    return verify_password


def get_hash_code() -> Callable[[str], str]:
    return hash_code


def get_token_service(
    revocations: Annotated[RevocationStorePort, Depends(get_revocation_store)],
) -> TokenServicePort:
    settings = get_settings()
    return JwtTokenService(
        settings.jwt_secret, revocations, algorithm=settings.jwt_algorithm
    )


def get_rotation(
    tokens: Annotated[TokenServicePort, Depends(get_token_service)],
    revocations: Annotated[RevocationStorePort, Depends(get_revocation_store)],
) -> SessionRotationController:
    settings = get_settings()
    return SessionRotationController(
        tokens,
        revocations,
        session_ttl_seconds=settings.session_ttl_seconds,
        threshold=settings.rotation_threshold,
        grace_seconds=settings.rotation_grace_seconds,
    )


def get_otp_service(
    store: Annotated[OtpStorePort, Depends(get_otp_store)],
    lockout: Annotated[LockoutPort, Depends(get_lockout)],
    email: Annotated[EmailPort, Depends(get_email_port)],
) -> OtpService:
    settings = get_settings()
    return OtpService(
        store=store,
        lockout=lockout,
        email=email,
        hash_code=hash_code,
        verify_code=verify_code,
        ttl_seconds=settings.otp_ttl_seconds,
        max_failures=settings.otp_max_failures,
        failure_window_seconds=settings.otp_failure_window_seconds,
    )


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def require_session(
    request: Request,
    tokens: Annotated[TokenServicePort, Depends(get_token_service)],
) -> TokenClaims:
    token = request.cookies.get("session_token")
    if not token:
        raise Unauthorized("Authentication required")
    try:
        return await tokens.verify(token, Purpose.AUTHENTICATED_SESSION)
    except Unauthorized:
        raise Unauthorized(clear_cookies=("session_token",))


def require_permission(permission: Permission):
    """
    Dependency factory: resolves the session once and authorizes the stored
    role. The role is read from the credential record, not the token, so a
    demotion takes effect before the session expires.
    """

    async def dependency(
        session: Annotated[TokenClaims, Depends(require_session)],
        uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    ) -> TokenClaims:
        async with uow as tx:
            credential = await tx.users.get_credential(session.sub)
        if credential is None:
            raise Unauthorized(clear_cookies=("session_token",))
        authorize(credential.role, permission)
        return session

    return dependency
