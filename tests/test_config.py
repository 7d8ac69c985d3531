"""Tests for configuration module."""

from __future__ import annotations

from planner.config import DEFAULT_DATABASE_URL, Settings, _ENV_PROFILES, get_database_url, get_settings


def test_settings_dataclass():
    s = Settings(database_url="sqlite+aiosqlite:///test.db")
    assert s.database_url == "sqlite+aiosqlite:///test.db"
    assert s.app_env == "dev"
    assert s.schedule_horizon_days == 120
    assert s.notifications_enabled is True
    assert s.notification_webhook_url == ""


def test_settings_frozen():
    s = Settings(database_url="x")
    try:
        s.database_url = "y"
        assert False, "Should raise"
    except AttributeError:
        pass


def test_settings_is_production():
    assert Settings(database_url="x", app_env="production").is_production is True
    assert Settings(database_url="x", app_env="staging").is_production is False


def test_get_database_url_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///from-env.db")
    assert get_database_url() == "sqlite+aiosqlite:///from-env.db"


def test_get_database_url_default(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert get_database_url() == DEFAULT_DATABASE_URL
    assert DEFAULT_DATABASE_URL.startswith("sqlite+aiosqlite")


def test_get_settings_uses_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///env.db")
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("NOTIFICATION_WEBHOOK_URL", " https://hooks.example.com/skip ")
    s = get_settings()
    assert s.database_url == "sqlite+aiosqlite:///env.db"
    assert s.app_env == "production"
    assert s.notification_webhook_url == "https://hooks.example.com/skip"


def test_env_profiles_exist():
    assert "dev" in _ENV_PROFILES
    assert "staging" in _ENV_PROFILES
    assert "production" in _ENV_PROFILES


def test_production_profile_disables_notifications(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.delenv("NOTIFICATIONS_ENABLED", raising=False)
    monkeypatch.delenv("SCHEDULE_HORIZON_DAYS", raising=False)
    s = get_settings()
    assert s.notifications_enabled is False
    assert s.schedule_horizon_days == 180


def test_dev_profile_debug_logging():
    assert _ENV_PROFILES["dev"]["log_level"] == "DEBUG"


def test_settings_flags_from_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("NOTIFICATIONS_ENABLED", "yes")
    monkeypatch.setenv("SCHEDULE_HORIZON_DAYS", "30")
    s = get_settings()
    assert s.notifications_enabled is True
    assert s.schedule_horizon_days == 30


def test_settings_profile_defaults(monkeypatch):
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("NOTIFICATIONS_ENABLED", raising=False)
    s = get_settings()
    assert s.log_level == "DEBUG"
    assert s.notifications_enabled is True
