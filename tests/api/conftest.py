import pytest
from fastapi.testclient import TestClient

from wallmag_auth.main import create_app
from wallmag_auth.presentation.dependencies import (
    get_csrf_store,
    get_email_port,
    get_hash_code,
    get_hash_password,
    get_lockout,
    get_otp_service,
    get_policy,
    get_rate_limiter,
    get_revocation_store,
    get_rotation,
    get_security_events,
    get_token_service,
    get_uow,
    get_verify_password,
)
from tests.fakes import fake_hash, fake_verify


@pytest.fixture()
def app_and_deps(
    uow,
    limiter,
    lockout,
    csrf,
    otp_service,
    tokens,
    rotation,
    revocations,
    events,
    email,
    policy,
):
    app = create_app()

    app.dependency_overrides[get_uow] = lambda: uow
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_lockout] = lambda: lockout
    app.dependency_overrides[get_csrf_store] = lambda: csrf
    app.dependency_overrides[get_otp_service] = lambda: otp_service
    app.dependency_overrides[get_token_service] = lambda: tokens
    app.dependency_overrides[get_rotation] = lambda: rotation
    app.dependency_overrides[get_revocation_store] = lambda: revocations
    app.dependency_overrides[get_security_events] = lambda: events
    app.dependency_overrides[get_email_port] = lambda: email
    app.dependency_overrides[get_policy] = lambda: policy
    app.dependency_overrides[get_hash_password] = lambda: fake_hash
    app.dependency_overrides[get_verify_password] = lambda: fake_verify
    app.dependency_overrides[get_hash_code] = lambda: fake_hash

    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    return TestClient(app_and_deps, raise_server_exceptions=False)
