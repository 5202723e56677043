from __future__ import annotations

import hmac
import re
import secrets

from wallmag_auth.domain.errors import InvalidInput

OTP_MIN = 100_000
OTP_SPAN = 900_000

_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9-]{4,50}$")
_OTP_RE = re.compile(r"^\d{6}$")
_SPECIAL_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


def generate_otp() -> str:
    """Six-digit code, uniform over [100000, 999999].

    randbelow() rejection-samples internally, so there is no modulo bias.
    """
    return str(OTP_MIN + secrets.randbelow(OTP_SPAN))


def generate_csrf_token() -> str:
    return secrets.token_hex(32)


def generate_backup_codes(count: int = 10) -> list[str]:
    return [secrets.token_hex(4).upper() for _ in range(count)]


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison for secrets.
    Accepts strings; falls back to bytes if needed.
    """
    try:
        return hmac.compare_digest(a, b)
    except TypeError:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def normalize_identifier(raw: str | None) -> str:
    if not isinstance(raw, str):
        raise InvalidInput()
    identifier = raw.strip()
    if not _IDENTIFIER_RE.match(identifier):
        raise InvalidInput()
    return identifier


def check_otp_format(code: str | None) -> str:
    if not isinstance(code, str) or not _OTP_RE.match(code):
        raise InvalidInput("Invalid verification code")
    return code


def check_password_policy(password: str | None, confirm_password: str | None) -> None:
    if not password or not confirm_password:
        raise InvalidInput("Password and confirm password are required")
    if password != confirm_password:
        raise InvalidInput("Passwords do not match")
    if len(password) < 8:
        raise InvalidInput("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        raise InvalidInput("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise InvalidInput("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise InvalidInput("Password must contain at least one number")
    if not _SPECIAL_RE.search(password):
        raise InvalidInput("Password must contain at least one special character")
