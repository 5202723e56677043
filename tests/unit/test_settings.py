from wallmag_auth.application.policy import AuthPolicy
from wallmag_auth.settings import get_settings


def test_get_settings_is_cached():
    get_settings.cache_clear()
    s1 = get_settings()
    s2 = get_settings()
    assert s1 is s2  # lru_cache returns the same instance


def test_env_overrides_and_cache_clear(monkeypatch):
    monkeypatch.setenv("OTP_TTL_SECONDS", "123")
    get_settings.cache_clear()
    s = get_settings()
    assert s.otp_ttl_seconds == 123

    monkeypatch.delenv("OTP_TTL_SECONDS", raising=False)
    get_settings.cache_clear()
    s2 = get_settings()
    assert s2.otp_ttl_seconds != 123


def test_cookie_secure_only_in_production(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    get_settings.cache_clear()
    assert get_settings().cookie_secure is True

    monkeypatch.setenv("APP_ENV", "dev")
    get_settings.cache_clear()
    assert get_settings().cookie_secure is False
    get_settings.cache_clear()


def test_policy_from_settings(monkeypatch):
    monkeypatch.setenv("LOGIN_IP_LIMIT", "7")
    monkeypatch.setenv("RATE_WINDOW_SECONDS", "60")
    get_settings.cache_clear()
    policy = AuthPolicy.from_settings(get_settings())
    assert policy.login_ip.requests == 7
    assert policy.login_ip.window_seconds == 60
    assert policy.otp_resend.window_seconds == 24 * 3600
    get_settings.cache_clear()
