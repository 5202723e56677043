import pytest

from wallmag_auth.domain.entities import Credential, Purpose
from wallmag_auth.infrastructure.redis_cache.security_events import RedisSecurityEvents
from wallmag_auth.presentation.dependencies import get_security_events
from tests.fakes import DownRedis


def _as(client, users, tokens, id_number, role):
    users.credentials[id_number] = Credential(
        id_number=id_number,
        name=id_number,
        email=f"{id_number.lower()}@school.test",
        password_hash="x",
        role=role,
    )
    session = tokens.issue(id_number, Purpose.AUTHENTICATED_SESSION, 3600, role=role)
    client.cookies.clear()
    client.cookies.set("session_token", session.token)


def test_admin_can_block_and_unblock(client, users, tokens, events):
    _as(client, users, tokens, "ADM-0001", "admin")

    response = client.post(
        "/api/admin/security/blocked-ips", json={"ip": "203.0.113.9", "duration_seconds": 600}
    )
    assert response.status_code == 200
    assert "203.0.113.9" in events.blocked

    blocked = client.get("/api/auth/me", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
    assert blocked.status_code == 403
    assert blocked.json() == {"message": "Access denied"}

    response = client.delete("/api/admin/security/blocked-ips/203.0.113.9")
    assert response.status_code == 200
    assert "203.0.113.9" not in events.blocked


def test_role_comes_from_the_store_not_the_token(client, users, tokens):
    _as(client, users, tokens, "STU-2002", "student")
    session = tokens.issue("STU-2002", Purpose.AUTHENTICATED_SESSION, 3600, role="admin")
    client.cookies.set("session_token", session.token)

    response = client.post("/api/admin/security/blocked-ips", json={"ip": "198.51.100.1"})
    assert response.status_code == 403
    assert response.json() == {"message": "Insufficient permissions"}


def test_admin_routes_require_a_session(client):
    response = client.delete("/api/admin/security/blocked-ips/198.51.100.1")
    assert response.status_code == 401


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({"X-Forwarded-For": "198.51.100.7"}, 403),
        ({"X-Real-IP": "198.51.100.7"}, 403),
        ({}, 200),
    ],
)
def test_client_ip_resolution(client, events, headers, expected):
    events.blocked.add("198.51.100.7")
    response = client.post("/api/auth/logout", headers=headers)
    assert response.status_code == expected


def test_security_headers(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert response.headers["X-Request-ID"]
    assert "Strict-Transport-Security" not in response.headers


def test_unreachable_block_list_lets_requests_through(client, app_and_deps):
    app_and_deps.dependency_overrides[get_security_events] = lambda: RedisSecurityEvents(
        DownRedis()
    )
    response = client.post("/api/auth/logout", headers={"X-Forwarded-For": "198.51.100.7"})
    assert response.status_code == 200
    assert response.headers["X-Request-ID"]
