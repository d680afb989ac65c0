from __future__ import annotations

import pytest
from pydantic import ValidationError

from cachefront.config.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "REDIS_URL",
        "REDIS_HOST",
        "CACHE_REDIS_ENV",
        "CACHE_NAMESPACE",
        "CACHE_READ_ONLY",
        "CACHE_BACKGROUND_REFRESH_INTERVAL_MS",
        "CACHE_BACKGROUND_REFRESH_INTERVAL_CHECK",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_documented_values() -> None:
    s = Settings()

    assert s.default_expiration_s == 900
    assert s.namespace == ""
    assert s.read_only is False
    assert s.background_refresh_interval_ms == 60_000
    assert s.background_refresh_min_ttl_ms == 70_000
    assert s.background_refresh_interval_check is True
    assert s.has_redis_config() is False


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Settings should hydrate deterministically from environment variables."""
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.setenv("CACHE_NAMESPACE", "app")
    monkeypatch.setenv("CACHE_READ_ONLY", "true")
    monkeypatch.setenv("CACHE_BACKGROUND_REFRESH_INTERVAL_MS", "300")
    monkeypatch.setenv("CACHE_BACKGROUND_REFRESH_INTERVAL_CHECK", "false")

    s = Settings()

    assert s.resolved_redis_url() == "redis://localhost:6379/0"
    assert s.namespace == "app"
    assert s.read_only is True
    assert s.background_refresh_interval_ms == 300
    assert s.background_refresh_interval_check is False


def test_redis_url_can_come_from_a_named_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CACHE_REDIS_ENV", "SESSION_REDIS_URL")
    monkeypatch.setenv("SESSION_REDIS_URL", "redis://sessions:6379/1")

    s = Settings()

    assert s.resolved_redis_url() == "redis://sessions:6379/1"
    assert s.has_redis_config() is True


def test_explicit_url_wins_over_named_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SESSION_REDIS_URL", "redis://sessions:6379/1")

    s = Settings(redis_url="redis://primary:6379/0", redis_url_env="SESSION_REDIS_URL")

    assert s.resolved_redis_url() == "redis://primary:6379/0"


def test_host_parts_count_as_configuration() -> None:
    s = Settings(redis_host="cache.internal")
    assert s.resolved_redis_url() is None
    assert s.has_redis_config() is True


def test_settings_forbid_extra_fields() -> None:
    """Model should reject unexpected fields."""
    with pytest.raises(ValidationError):
        Settings.model_validate({"namespace": "app", "unexpected_field": "boom"})


def test_settings_reject_out_of_range_values() -> None:
    with pytest.raises(ValidationError):
        Settings(redis_port=0)
    with pytest.raises(ValidationError):
        Settings(background_refresh_interval_ms=0)


def test_get_settings_is_cached() -> None:
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
