from __future__ import annotations

from typing import Sequence


class DomainError(Exception):
    """Base class for all domain-level errors.

    ``message`` is safe to show to a client. ``clear_cookies`` names the
    cookies of an aborted flow stage that must be dropped with the response.
    """

    status_code: int = 500
    default_message: str = "An error occurred. Please try again later"

    def __init__(
        self, message: str | None = None, *, clear_cookies: Sequence[str] = ()
    ) -> None:
        self.message = message or self.default_message
        self.clear_cookies = tuple(clear_cookies)
        super().__init__(self.message)


class InvalidInput(DomainError):
    """Malformed identifier, code or password."""

    status_code = 400
    default_message = "Invalid request"


class Unauthorized(DomainError):
    """Missing, invalid, expired, wrong-purpose or revoked token."""

    status_code = 401
    default_message = "Invalid session"


class InvalidCredentials(Unauthorized):
    default_message = "Invalid credentials"


class Forbidden(DomainError):
    """CSRF mismatch, blocked IP or missing permission."""

    status_code = 403
    default_message = "Invalid request"


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found"


class Conflict(DomainError):
    status_code = 409
    default_message = "Invalid request or user already registered"


class CredentialAlreadyExists(Conflict):
    """The store refused a second credential record for the same identifier."""


class RateLimited(DomainError):
    status_code = 429
    default_message = "Too many requests. Please try again later"

    def __init__(
        self,
        message: str | None = None,
        *,
        retry_after: int | None = None,
        clear_cookies: Sequence[str] = (),
    ) -> None:
        super().__init__(message, clear_cookies=clear_cookies)
        self.retry_after = retry_after


class Locked(DomainError):
    status_code = 429

    def __init__(
        self, remaining_seconds: int, *, clear_cookies: Sequence[str] = ()
    ) -> None:
        self.remaining_seconds = max(0, int(remaining_seconds))
        minutes = max(1, -(-self.remaining_seconds // 60))
        plural = "s" if minutes > 1 else ""
        super().__init__(
            "Account temporarily locked due to too many failed attempts. "
            f"Try again in {minutes} minute{plural}",
            clear_cookies=clear_cookies,
        )


class OtpNotFound(InvalidInput):
    default_message = "Invalid or expired verification code"


class OtpAlreadyUsed(InvalidInput):
    default_message = "Code already used. Please request a new one"


class InvalidOtp(InvalidInput):
    default_message = "Invalid verification code"


class Internal(DomainError):
    status_code = 500


class DeliveryFailed(Internal):
    default_message = "Failed to send verification code. Please try again"


class DependencyUnavailable(DomainError):
    """A backing service (cache, store) could not be reached."""

    status_code = 503
    default_message = "Service temporarily unavailable. Please try again later"
