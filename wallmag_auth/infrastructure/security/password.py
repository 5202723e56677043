from __future__ import annotations

from passlib.context import CryptContext

from wallmag_auth.settings import get_settings

# One global context; bcrypt is the only scheme we use.
_pwd = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str, *, rounds: int | None = None) -> str:
    """
    Hash a password using bcrypt. If rounds is None, use settings.bcrypt_rounds.
    """
    if rounds is None:
        rounds = int(get_settings().bcrypt_rounds)
    return _pwd.hash(plain, rounds=rounds)


def verify_password(plain: str, password_hash: str) -> bool:
    """
    Verify a password against its bcrypt hash (safe timing).
    Malformed hashes count as a mismatch.
    """
    try:
        return _pwd.verify(plain, password_hash)
    except (ValueError, TypeError):
        return False


def hash_code(code: str, *, rounds: int | None = None) -> str:
    """One-time and backup codes: same scheme, cheaper cost factor."""
    if rounds is None:
        rounds = int(get_settings().code_bcrypt_rounds)
    return _pwd.hash(code, rounds=rounds)


verify_code = verify_password
