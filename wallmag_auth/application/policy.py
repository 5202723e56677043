from __future__ import annotations

from dataclasses import dataclass

from wallmag_auth.settings import Settings


@dataclass(frozen=True)
class Limit:
    requests: int
    window_seconds: int


@dataclass(frozen=True)
class AuthPolicy:
    """Plain values the flows need; built from Settings at the edge."""

    signup_token_ttl: int = 600
    profile_token_ttl: int = 600
    reset_token_ttl: int = 300
    session_ttl: int = 7 * 24 * 60 * 60
    otp_ttl: int = 300
    csrf_ttl: int = 300
    signup_lock_seconds: int = 8
    login_max_failures: int = 5
    login_failure_window: int = 900
    signup_ip: Limit = Limit(30, 3600)
    signup_id: Limit = Limit(10, 3600)
    otp_resend: Limit = Limit(10, 24 * 3600)
    verify_ip: Limit = Limit(60, 3600)
    verify_id: Limit = Limit(10, 3600)
    profile_ip: Limit = Limit(20, 3600)
    login_ip: Limit = Limit(20, 3600)
    reset_request_ip: Limit = Limit(10, 3600)
    reset_request_id: Limit = Limit(5, 3600)
    reset_confirm_ip: Limit = Limit(30, 3600)

    @classmethod
    def from_settings(cls, s: Settings) -> "AuthPolicy":
        window = s.rate_window_seconds
        return cls(
            signup_token_ttl=s.signup_token_ttl_seconds,
            profile_token_ttl=s.profile_token_ttl_seconds,
            reset_token_ttl=s.reset_token_ttl_seconds,
            session_ttl=s.session_ttl_seconds,
            otp_ttl=s.otp_ttl_seconds,
            csrf_ttl=s.csrf_ttl_seconds,
            signup_lock_seconds=s.signup_lock_seconds,
            login_max_failures=s.login_max_failures,
            login_failure_window=s.login_failure_window_seconds,
            signup_ip=Limit(s.signup_ip_limit, window),
            signup_id=Limit(s.signup_id_limit, window),
            otp_resend=Limit(s.otp_resend_limit, s.otp_resend_window_seconds),
            verify_ip=Limit(s.verify_ip_limit, window),
            verify_id=Limit(s.verify_id_limit, window),
            profile_ip=Limit(s.profile_ip_limit, window),
            login_ip=Limit(s.login_ip_limit, window),
            reset_request_ip=Limit(s.reset_request_ip_limit, window),
            reset_request_id=Limit(s.reset_request_id_limit, window),
            reset_confirm_ip=Limit(s.reset_confirm_ip_limit, window),
        )
