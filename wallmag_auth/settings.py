from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"

    # Infra
    database_url: str = "postgresql://app:app@db:5432/app"
    redis_url: str = "redis://redis:6379/0"
    smtp_base_url: str = "http://smtp-relay:8025"
    email_sender: str = "Wall-Magazine <no-reply@wallmag.local>"

    # Tokens
    jwt_secret: str = "dev-only-secret-change-me-0123456789abcdef"
    jwt_algorithm: str = "HS256"
    signup_token_ttl_seconds: int = 600
    profile_token_ttl_seconds: int = 600
    reset_token_ttl_seconds: int = 300
    session_ttl_seconds: int = 7 * 24 * 60 * 60
    rotation_threshold: float = 0.25
    rotation_grace_seconds: int = 15

    # Security / policies
    bcrypt_rounds: int = 12
    code_bcrypt_rounds: int = 11
    otp_ttl_seconds: int = 300
    csrf_ttl_seconds: int = 300
    otp_max_failures: int = 5
    otp_failure_window_seconds: int = 300
    login_max_failures: int = 5
    login_failure_window_seconds: int = 900
    lock_seconds: int = 1800
    otp_resend_limit: int = 10
    otp_resend_window_seconds: int = 24 * 3600
    signup_lock_seconds: int = 8

    # Rate limits (requests per window)
    rate_window_seconds: int = 3600
    signup_ip_limit: int = 30
    signup_id_limit: int = 10
    verify_ip_limit: int = 60
    verify_id_limit: int = 10
    profile_ip_limit: int = 20
    login_ip_limit: int = 20
    reset_request_ip_limit: int = 10
    reset_request_id_limit: int = 5
    reset_confirm_ip_limit: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cookie_secure(self) -> bool:
        return self.app_env.lower() in ("prod", "production")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
