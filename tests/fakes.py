from __future__ import annotations

from typing import Any

from redis.exceptions import ConnectionError as RedisConnectionError

from wallmag_auth.domain.entities import (
    Credential,
    LockStatus,
    OtpFlow,
    OtpRecord,
    RateLimitResult,
    RegisteredUser,
    RevocationStatus,
)
from wallmag_auth.domain.errors import CredentialAlreadyExists

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
FIXED_OTP = "123456"


class FakeClock:
    """Settable epoch clock shared by every fake that expires things."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class DownRedis:
    """Redis client stand-in whose every command fails to connect."""

    def __getattr__(self, name):
        async def _fail(*args, **kwargs):
            raise RedisConnectionError("connection refused")

        return _fail


class _Expiring:
    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: dict[str, tuple[Any, float | None]] = {}

    def get(self, key: str) -> Any:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: float | None) -> None:
        expires_at = None if ttl is None else self._clock() + ttl
        self._data[key] = (value, expires_at)

    def ttl(self, key: str) -> int:
        if self.get(key) is None:
            return -2
        _, expires_at = self._data[key]
        if expires_at is None:
            return -1
        return int(expires_at - self._clock())

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FakeRateLimiter:
    def __init__(self, clock: FakeClock | None = None, *, down: bool = False) -> None:
        self._store = _Expiring(clock or FakeClock())
        self.down = down
        self.resets: list[str] = []

    async def increment_and_check(
        self, key: str, limit: int, window_seconds: int
    ) -> RateLimitResult:
        if self.down:
            return RateLimitResult(count=-1, blocked=True, retry_after=window_seconds)
        count = self._store.get(key)
        if count is None:
            self._store.set(key, 1, window_seconds)
            count = 1
        else:
            count += 1
            self._store._data[key] = (count, self._store._data[key][1])
        blocked = count > limit
        return RateLimitResult(
            count=count,
            blocked=blocked,
            retry_after=max(self._store.ttl(key), 1) if blocked else None,
        )

    async def reset(self, *keys: str) -> None:
        for key in keys:
            self.resets.append(key)
            self._store.delete(key)

    async def acquire_slot(self, key: str, ttl_seconds: int) -> bool:
        if self.down or self._store.get(key) is not None:
            return False
        self._store.set(key, "1", ttl_seconds)
        return True

    def count(self, key: str) -> int:
        return self._store.get(key) or 0


class FakeOtpStore:
    def __init__(self, clock: FakeClock | None = None) -> None:
        self._store = _Expiring(clock or FakeClock())

    @staticmethod
    def _key(identifier: str, flow: OtpFlow) -> str:
        return f"{flow.value}:{identifier}"

    async def replace(
        self, identifier: str, flow: OtpFlow, code_hash: str, ttl_seconds: int
    ) -> None:
        self._store.set(self._key(identifier, flow), OtpRecord(hash=code_hash), ttl_seconds)

    async def get(self, identifier: str, flow: OtpFlow) -> OtpRecord | None:
        return self._store.get(self._key(identifier, flow))

    async def mark_verified(self, identifier: str, flow: OtpFlow) -> bool:
        key = self._key(identifier, flow)
        record = self._store.get(key)
        if record is None:
            return False
        _, expires_at = self._store._data[key]
        self._store._data[key] = (OtpRecord(hash=record.hash, verified=True), expires_at)
        return True

    async def delete(self, identifier: str, flow: OtpFlow) -> None:
        self._store.delete(self._key(identifier, flow))


class FakeCsrfStore:
    def __init__(self, clock: FakeClock | None = None) -> None:
        self._store = _Expiring(clock or FakeClock())

    async def put(self, identifier: str, token: str, ttl_seconds: int) -> None:
        self._store.set(identifier, token, ttl_seconds)

    async def get(self, identifier: str) -> str | None:
        return self._store.get(identifier)

    async def delete(self, identifier: str) -> None:
        self._store.delete(identifier)


class FakeRevocationStore:
    """Same three-state model as the Redis store, kept in a dict."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self._clock = clock or FakeClock()
        self._store = _Expiring(self._clock)
        self.claims: list[str] = []

    async def mark_revoked(self, jti: str, ttl_seconds: int) -> None:
        self._store.set(jti, "revoked", max(ttl_seconds, 1))

    async def mark_rotating(self, jti: str, grace_seconds: int, ttl_seconds: int) -> None:
        self._store.set(
            jti, ("rotating", self._clock() + grace_seconds), max(ttl_seconds, grace_seconds, 1)
        )

    async def claim_rotation(self, jti: str, grace_seconds: int, ttl_seconds: int) -> bool:
        if self._store.get(jti) is not None:
            return False
        await self.mark_rotating(jti, grace_seconds, ttl_seconds)
        self.claims.append(jti)
        return True

    async def status(self, jti: str) -> RevocationStatus:
        value = self._store.get(jti)
        if value is None:
            return RevocationStatus.LIVE
        if isinstance(value, tuple) and self._clock() < value[1]:
            return RevocationStatus.ROTATING
        return RevocationStatus.REVOKED


class FakeLockout:
    def __init__(self, clock: FakeClock | None = None, *, lock_seconds: int = 1800) -> None:
        self._store = _Expiring(clock or FakeClock())
        self.lock_seconds = lock_seconds

    async def check_locked(self, identifier: str) -> LockStatus:
        ttl = self._store.ttl(f"locked:{identifier}")
        if ttl > 0:
            return LockStatus(locked=True, remaining_seconds=ttl)
        return LockStatus(locked=False)

    async def record_failure(
        self, identifier: str, scope: str, threshold: int, window_seconds: int
    ) -> LockStatus:
        lock_key = f"locked:{identifier}"
        if self._store.get(lock_key) is not None:
            return LockStatus(locked=True, remaining_seconds=self._store.ttl(lock_key))
        counter_key = f"failures:{scope}:{identifier}"
        count = self._store.get(counter_key)
        if count is None:
            self._store.set(counter_key, 1, window_seconds)
            count = 1
        else:
            count += 1
            self._store._data[counter_key] = (count, self._store._data[counter_key][1])
        if count >= threshold:
            self._store.set(lock_key, "1", self.lock_seconds)
            self._store.delete(counter_key)
            return LockStatus(locked=True, remaining_seconds=self.lock_seconds, failures=count)
        return LockStatus(locked=False, failures=count)

    async def clear_failures(self, identifier: str, scope: str) -> None:
        self._store.delete(f"failures:{scope}:{identifier}")

    def failures(self, identifier: str, scope: str) -> int:
        return self._store.get(f"failures:{scope}:{identifier}") or 0

    def lock(self, identifier: str, seconds: int | None = None) -> None:
        self._store.set(f"locked:{identifier}", "1", seconds or self.lock_seconds)


class FakeSecurityEvents:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []
        self.blocked: set[str] = set()

    async def record(self, event_type: str, *, ip=None, identifier=None, attempt=None) -> None:
        self.events.append(
            {"type": event_type, "ip": ip, "identifier": identifier, "attempt": attempt}
        )

    async def is_ip_blocked(self, ip: str) -> bool:
        return ip in self.blocked

    async def block_ip(self, ip: str, duration_seconds: int = 86400) -> None:
        self.blocked.add(ip)

    async def unblock_ip(self, ip: str) -> None:
        self.blocked.discard(ip)

    def types(self) -> list[str]:
        return [e["type"] for e in self.events]


class FakeUserRepo:
    def __init__(self) -> None:
        self.registered: dict[str, RegisteredUser] = {}
        self.credentials: dict[str, Credential] = {}

    def add_registered(self, id_number: str, **kwargs: Any) -> RegisteredUser:
        user = RegisteredUser(
            id_number=id_number,
            name=kwargs.pop("name", "Test Student"),
            email=kwargs.pop("email", f"{id_number.lower()}@school.test"),
            **kwargs,
        )
        self.registered[id_number] = user
        return user

    async def get_registered(self, id_number: str) -> RegisteredUser | None:
        return self.registered.get(id_number)

    async def get_credential(self, id_number: str) -> Credential | None:
        return self.credentials.get(id_number)

    async def create_credential(self, credential: Credential) -> Credential:
        if credential.id_number in self.credentials:
            raise CredentialAlreadyExists()
        self.credentials[credential.id_number] = credential
        return credential

    async def mark_signed_up(self, id_number: str) -> None:
        self.registered[id_number].is_signed_up = True

    async def update_password_hash(self, id_number: str, password_hash: str) -> bool:
        credential = self.credentials.get(id_number)
        if credential is None:
            return False
        credential.password_hash = password_hash
        return True

    async def enable_two_factor(self, id_number: str, backup_code_hashes: list[str]) -> bool:
        credential = self.credentials.get(id_number)
        if credential is None or credential.two_factor_enabled:
            return False
        credential.two_factor_enabled = True
        credential.backup_code_hashes = list(backup_code_hashes)
        return True

    async def disable_two_factor(self, id_number: str) -> bool:
        credential = self.credentials.get(id_number)
        if credential is None or not credential.two_factor_enabled:
            return False
        credential.two_factor_enabled = False
        credential.backup_code_hashes = []
        return True


class FakeUoW:
    def __init__(self, users: FakeUserRepo | None = None) -> None:
        self.users = users or FakeUserRepo()
        self.committed = False
        self.rolled_back = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc:
            self.rolled_back = True

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


class FakeEmailOK:
    def __init__(self):
        self.calls: list[dict[str, Any]] = []

    async def send(
        self, *, to: str, subject: str, body: str, idempotency_key=None
    ) -> None:
        self.calls.append(
            {
                "to": to,
                "subject": subject,
                "body": body,
                "idempotency_key": idempotency_key,
            }
        )


class FakeEmailDown:
    def __init__(self):
        self.calls: int = 0

    async def send(
        self, *, to: str, subject: str, body: str, idempotency_key=None
    ) -> None:
        self.calls += 1
        raise RuntimeError("SMTP responded 503: relay down")


def fake_hash(plain: str, **_: Any) -> str:
    return "hashed-" + plain


def fake_verify(plain: str, hashed: str) -> bool:
    return hashed == "hashed-" + plain
