from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Purpose(str, Enum):
    """Stage tag carried by every signed token."""

    OTP_VERIFICATION = "otp_verification"
    PROFILE_CREATION = "profile_creation"
    AUTHENTICATED_SESSION = "authenticated_session"
    PASSWORD_RESET = "password_reset"


class OtpFlow(str, Enum):
    """Namespace of an OTP record; each flow holds at most one live code."""

    SIGNUP = "signup"
    RESET = "reset"


class RevocationStatus(str, Enum):
    LIVE = "live"
    ROTATING = "rotating"
    REVOKED = "revoked"


@dataclass
class RegisteredUser:
    """Roster entry created by administrators; the signup flow starts from it."""

    id_number: str
    name: str
    email: str
    role: str = "student"
    is_signed_up: bool = False


@dataclass
class Credential:
    id_number: str
    name: str
    email: str
    password_hash: str
    role: str = "student"
    two_factor_enabled: bool = False
    backup_code_hashes: list[str] = field(default_factory=list)
    created_at: datetime | None = None

    def summary(self) -> dict[str, str]:
        return {
            "id_number": self.id_number,
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }


@dataclass(frozen=True)
class OtpRecord:
    hash: str
    verified: bool = False


@dataclass(frozen=True)
class TokenClaims:
    sub: str
    purpose: Purpose
    jti: str
    iat: int
    exp: int
    email: str | None = None
    role: str | None = None

    @property
    def lifetime(self) -> int:
        return self.exp - self.iat

    def time_until_expiry(self, now: int) -> int:
        return self.exp - now


@dataclass(frozen=True)
class IssuedToken:
    token: str
    claims: TokenClaims


@dataclass(frozen=True)
class RateLimitResult:
    count: int
    blocked: bool
    retry_after: int | None = None


@dataclass(frozen=True)
class LockStatus:
    locked: bool
    remaining_seconds: int = 0
    failures: int = 0


@dataclass(frozen=True)
class RefreshResult:
    refreshed: bool
    expires_in: int
    claims: TokenClaims
    token: str | None = None
