"""Application configuration with environment-specific profiles.

Supports dev, staging, and production environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///workout_planner.db"


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    database_url: str = DEFAULT_DATABASE_URL
    app_env: str = "dev"
    log_level: str = "INFO"

    # Default look-ahead used when the API generates a schedule without an explicit end date
    schedule_horizon_days: int = 120

    # Skipped-session notices (best effort)
    notifications_enabled: bool = True
    notification_webhook_url: str = ""
    notification_webhook_secret: str = ""

    request_id_header_name: str = "X-Request-ID"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
        "schedule_horizon_days": 120,
        "notifications_enabled": True,
    },
    "staging": {
        "log_level": "INFO",
        "schedule_horizon_days": 120,
        "notifications_enabled": True,
    },
    "production": {
        "log_level": "WARNING",
        "schedule_horizon_days": 180,
        "notifications_enabled": False,
    },
}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def get_database_url() -> str:
    """Resolve database URL from env var or the local SQLite default."""
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return DEFAULT_DATABASE_URL


def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    return Settings(
        database_url=get_database_url(),
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        schedule_horizon_days=int(
            os.getenv("SCHEDULE_HORIZON_DAYS", str(profile.get("schedule_horizon_days", 120)))
        ),
        notifications_enabled=_env_flag("NOTIFICATIONS_ENABLED", bool(profile.get("notifications_enabled", True))),
        notification_webhook_url=os.getenv("NOTIFICATION_WEBHOOK_URL", "").strip(),
        notification_webhook_secret=os.getenv("NOTIFICATION_WEBHOOK_SECRET", ""),
        request_id_header_name=os.getenv("REQUEST_ID_HEADER", "X-Request-ID"),
    )
