from typing import Annotated, Callable, Optional

from fastapi import APIRouter, Cookie, Depends, Response, status

from wallmag_auth.application.otp_service import OtpService
from wallmag_auth.application.password_reset import (
    RESET_COOKIES,
    request_password_reset,
    reset_password,
)
from wallmag_auth.application.policy import AuthPolicy
from wallmag_auth.application.session_rotation import SessionRotationController
from wallmag_auth.application.sessions import (
    SESSION_COOKIES,
    login,
    logout,
    refresh_session,
)
from wallmag_auth.application.signup import (
    PROFILE_COOKIES,
    SIGNUP_COOKIES,
    create_profile,
    request_signup,
    verify_signup_otp,
)
from wallmag_auth.application.two_factor import disable_two_factor, enable_two_factor
from wallmag_auth.domain.entities import Credential, TokenClaims
from wallmag_auth.domain.ports.csrf_store import CsrfStorePort
from wallmag_auth.domain.ports.email_port import EmailPort
from wallmag_auth.domain.ports.lockout import LockoutPort
from wallmag_auth.domain.ports.rate_limiter import RateLimiterPort
from wallmag_auth.domain.ports.security_events import SecurityEventsPort
from wallmag_auth.domain.ports.token_service import TokenServicePort
from wallmag_auth.domain.ports.unit_of_work import UnitOfWorkPort
from wallmag_auth.presentation.cookies import clear_cookies, set_cookie
from wallmag_auth.presentation.dependencies import (
    get_client_ip,
    get_csrf_store,
    get_email_port,
    get_hash_code,
    get_hash_password,
    get_lockout,
    get_otp_service,
    get_policy,
    get_rate_limiter,
    get_rotation,
    get_security_events,
    get_token_service,
    get_uow,
    get_verify_password,
    require_session,
)
from wallmag_auth.schemas.requests import (
    CreateProfileIn,
    DisableTwoFactorIn,
    ForgotPasswordIn,
    LoginIn,
    ResetPasswordIn,
    SignupIn,
    VerifyOtpIn,
)
from wallmag_auth.schemas.responses import (
    BackupCodesOut,
    LoginOut,
    MessageOut,
    ProfileCreatedOut,
    RefreshOut,
    SessionOut,
    SignupOut,
    UserOut,
)

router = APIRouter(prefix="/auth", tags=["Auth"])

Uow = Annotated[UnitOfWorkPort, Depends(get_uow)]
Limiter = Annotated[RateLimiterPort, Depends(get_rate_limiter)]
Lockout = Annotated[LockoutPort, Depends(get_lockout)]
Otp = Annotated[OtpService, Depends(get_otp_service)]
Tokens = Annotated[TokenServicePort, Depends(get_token_service)]
Rotation = Annotated[SessionRotationController, Depends(get_rotation)]
Csrf = Annotated[CsrfStorePort, Depends(get_csrf_store)]
Events = Annotated[SecurityEventsPort, Depends(get_security_events)]
Policy = Annotated[AuthPolicy, Depends(get_policy)]
ClientIp = Annotated[str, Depends(get_client_ip)]


def _user_out(credential: Credential) -> UserOut:
    return UserOut(**credential.summary())


@router.post("/signup", response_model=SignupOut)
async def post_signup(
    body: SignupIn,
    response: Response,
    uow: Uow,
    limiter: Limiter,
    lockout: Lockout,
    otp: Otp,
    tokens: Tokens,
    csrf: Csrf,
    policy: Policy,
    ip: ClientIp,
):
    started = await request_signup(
        uow=uow,
        limiter=limiter,
        lockout=lockout,
        otp=otp,
        tokens=tokens,
        csrf=csrf,
        policy=policy,
        id_number=body.id_number,
        ip=ip,
    )
    set_cookie(response, "signup_token", started.signup_token.token, policy.signup_token_ttl)
    set_cookie(response, "otp_csrf_token", started.csrf_token, policy.csrf_ttl)
    return SignupOut(
        message="Verification code sent to your email",
        expires_in=started.expires_in,
        csrf_token=started.csrf_token,
    )


@router.post("/verify-otp", response_model=MessageOut)
async def post_verify_otp(
    body: VerifyOtpIn,
    response: Response,
    limiter: Limiter,
    lockout: Lockout,
    otp: Otp,
    tokens: Tokens,
    rotation: Rotation,
    csrf: Csrf,
    events: Events,
    policy: Policy,
    ip: ClientIp,
    signup_token: Annotated[Optional[str], Cookie()] = None,
    otp_csrf_token: Annotated[Optional[str], Cookie()] = None,
):
    profile = await verify_signup_otp(
        limiter=limiter,
        lockout=lockout,
        otp=otp,
        tokens=tokens,
        rotation=rotation,
        csrf=csrf,
        events=events,
        policy=policy,
        signup_token=signup_token,
        csrf_cookie=otp_csrf_token,
        csrf_submitted=body.csrf_token,
        code=body.otp,
        ip=ip,
    )
    clear_cookies(response, SIGNUP_COOKIES)
    set_cookie(response, "profile_token", profile.token, policy.profile_token_ttl)
    return MessageOut(message="Verification successful")


@router.post(
    "/create-profile",
    status_code=status.HTTP_201_CREATED,
    response_model=ProfileCreatedOut,
)
async def post_create_profile(
    body: CreateProfileIn,
    response: Response,
    uow: Uow,
    limiter: Limiter,
    otp: Otp,
    tokens: Tokens,
    rotation: Rotation,
    policy: Policy,
    hash_password: Annotated[Callable[..., str], Depends(get_hash_password)],
    ip: ClientIp,
    profile_token: Annotated[Optional[str], Cookie()] = None,
):
    credential, session = await create_profile(
        uow=uow,
        limiter=limiter,
        otp=otp,
        tokens=tokens,
        rotation=rotation,
        policy=policy,
        hash_password=hash_password,
        profile_token=profile_token,
        password=body.password,
        confirm_password=body.confirm_password,
        ip=ip,
    )
    clear_cookies(response, PROFILE_COOKIES)
    set_cookie(response, "session_token", session.token, policy.session_ttl)
    return ProfileCreatedOut(message="Profile created", user=_user_out(credential))


@router.post("/login", response_model=LoginOut)
async def post_login(
    body: LoginIn,
    response: Response,
    uow: Uow,
    limiter: Limiter,
    lockout: Lockout,
    tokens: Tokens,
    events: Events,
    policy: Policy,
    verify_password: Annotated[Callable[[str, str], bool], Depends(get_verify_password)],
    ip: ClientIp,
):
    credential, session = await login(
        uow=uow,
        limiter=limiter,
        lockout=lockout,
        tokens=tokens,
        events=events,
        policy=policy,
        verify_password=verify_password,
        id_number=body.id_number,
        password=body.password,
        ip=ip,
    )
    set_cookie(response, "session_token", session.token, policy.session_ttl)
    return LoginOut(
        message="Login successful", role=credential.role, user=_user_out(credential)
    )


@router.post("/refresh-session", response_model=RefreshOut)
async def post_refresh_session(
    response: Response,
    rotation: Rotation,
    session_token: Annotated[Optional[str], Cookie()] = None,
):
    result = await refresh_session(rotation, session_token)
    if result.refreshed:
        set_cookie(response, "session_token", result.token, result.expires_in)
        return RefreshOut(message="Session refreshed", expires_in=result.expires_in)
    return RefreshOut(message="Session still valid", expires_in=result.expires_in)


@router.post("/logout", response_model=MessageOut)
async def post_logout(
    response: Response,
    tokens: Tokens,
    rotation: Rotation,
    session_token: Annotated[Optional[str], Cookie()] = None,
):
    await logout(tokens, rotation, session_token)
    clear_cookies(response, SESSION_COOKIES)
    return MessageOut(message="Logged out successfully")


@router.post("/forgot-password", response_model=MessageOut)
async def post_forgot_password(
    body: ForgotPasswordIn,
    response: Response,
    uow: Uow,
    limiter: Limiter,
    otp: Otp,
    tokens: Tokens,
    policy: Policy,
    ip: ClientIp,
):
    reset = await request_password_reset(
        uow=uow,
        limiter=limiter,
        otp=otp,
        tokens=tokens,
        policy=policy,
        id_number=body.id_number,
        ip=ip,
    )
    set_cookie(response, "reset_token", reset.token, policy.reset_token_ttl)
    return MessageOut(
        message="If the account exists, a reset code has been sent to its email"
    )


@router.post("/reset-password", response_model=MessageOut)
async def post_reset_password(
    body: ResetPasswordIn,
    response: Response,
    uow: Uow,
    limiter: Limiter,
    lockout: Lockout,
    otp: Otp,
    tokens: Tokens,
    rotation: Rotation,
    events: Events,
    policy: Policy,
    hash_password: Annotated[Callable[..., str], Depends(get_hash_password)],
    ip: ClientIp,
    reset_token: Annotated[Optional[str], Cookie()] = None,
):
    await reset_password(
        uow=uow,
        limiter=limiter,
        lockout=lockout,
        otp=otp,
        tokens=tokens,
        rotation=rotation,
        events=events,
        policy=policy,
        hash_password=hash_password,
        reset_token=reset_token,
        code=body.otp,
        password=body.password,
        confirm_password=body.confirm_password,
        ip=ip,
    )
    clear_cookies(response, RESET_COOKIES)
    return MessageOut(message="Password updated")


@router.post("/2fa/setup", response_model=BackupCodesOut)
async def post_two_factor_setup(
    session: Annotated[TokenClaims, Depends(require_session)],
    uow: Uow,
    email: Annotated[EmailPort, Depends(get_email_port)],
    hash_code: Annotated[Callable[[str], str], Depends(get_hash_code)],
):
    codes = await enable_two_factor(uow=uow, email=email, hash_code=hash_code, session=session)
    return BackupCodesOut(
        message="Two-factor authentication enabled. Store these codes safely",
        backup_codes=codes,
    )


@router.delete("/2fa/setup", response_model=MessageOut)
async def delete_two_factor_setup(
    body: DisableTwoFactorIn,
    session: Annotated[TokenClaims, Depends(require_session)],
    uow: Uow,
    verify_password: Annotated[Callable[[str, str], bool], Depends(get_verify_password)],
):
    await disable_two_factor(
        uow=uow, verify_password=verify_password, session=session, password=body.password
    )
    return MessageOut(message="2FA disabled successfully")


@router.get("/me", response_model=SessionOut)
async def get_me(session: Annotated[TokenClaims, Depends(require_session)]):
    return SessionOut(
        id_number=session.sub,
        email=session.email,
        role=session.role,
        expires_at=session.exp,
    )
