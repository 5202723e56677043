import pytest

from wallmag_auth.application.otp_service import OtpService
from wallmag_auth.application.policy import AuthPolicy
from wallmag_auth.application.session_rotation import SessionRotationController
from wallmag_auth.infrastructure.security.tokens import JwtTokenService
from tests.fakes import (
    FIXED_OTP,
    TEST_SECRET,
    FakeClock,
    FakeCsrfStore,
    FakeEmailOK,
    FakeLockout,
    FakeOtpStore,
    FakeRateLimiter,
    FakeRevocationStore,
    FakeSecurityEvents,
    FakeUoW,
    FakeUserRepo,
    fake_hash,
    fake_verify,
)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def limiter(clock):
    return FakeRateLimiter(clock)


@pytest.fixture()
def otp_store(clock):
    return FakeOtpStore(clock)


@pytest.fixture()
def csrf(clock):
    return FakeCsrfStore(clock)


@pytest.fixture()
def revocations(clock):
    return FakeRevocationStore(clock)


@pytest.fixture()
def lockout(clock):
    return FakeLockout(clock)


@pytest.fixture()
def events():
    return FakeSecurityEvents()


@pytest.fixture()
def users():
    repo = FakeUserRepo()
    repo.add_registered("STU-1001", name="Ada Student", email="ada@school.test")
    return repo


@pytest.fixture()
def uow(users):
    return FakeUoW(users)


@pytest.fixture()
def email():
    return FakeEmailOK()


@pytest.fixture()
def policy():
    return AuthPolicy()


@pytest.fixture()
def tokens(revocations, clock):
    return JwtTokenService(TEST_SECRET, revocations, clock=clock)


@pytest.fixture()
def rotation(tokens, revocations, policy):
    return SessionRotationController(
        tokens,
        revocations,
        session_ttl_seconds=policy.session_ttl,
        threshold=0.25,
        grace_seconds=15,
    )


@pytest.fixture()
def otp_service(otp_store, lockout, email):
    return OtpService(
        store=otp_store,
        lockout=lockout,
        email=email,
        hash_code=fake_hash,
        verify_code=fake_verify,
    )


@pytest.fixture(autouse=True)
def patch_code_and_delays(monkeypatch):
    """
    Deterministic OTP and no artificial sleeps in all tests.
    Re-monkeypatch in a specific test to change either.
    """
    from wallmag_auth.application import delays
    from wallmag_auth.domain import services as domain_services

    async def _no_delay() -> None:
        return None

    monkeypatch.setattr(domain_services, "generate_otp", lambda: FIXED_OTP)
    monkeypatch.setattr(delays, "failure_delay", _no_delay)
    monkeypatch.setattr(delays, "enumeration_delay", _no_delay)
    yield
