from wallmag_auth.domain.errors import (
    CredentialAlreadyExists,
    DomainError,
    InvalidCredentials,
    InvalidOtp,
    Locked,
    RateLimited,
)


def test_default_messages_and_status():
    assert InvalidOtp().status_code == 400
    assert InvalidOtp().message == "Invalid verification code"
    assert InvalidCredentials().status_code == 401
    assert CredentialAlreadyExists().status_code == 409
    assert DomainError().status_code == 500


def test_locked_message_rounds_up_minutes():
    exc = Locked(1800)
    assert exc.status_code == 429
    assert exc.remaining_seconds == 1800
    assert exc.message.endswith("Try again in 30 minutes")
    assert Locked(61).message.endswith("2 minutes")
    assert Locked(10).message.endswith("1 minute")


def test_clear_cookies_and_retry_after_are_kept():
    exc = RateLimited(retry_after=42, clear_cookies=["a", "b"])
    assert exc.retry_after == 42
    assert exc.clear_cookies == ("a", "b")
