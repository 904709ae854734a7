"""
Application settings loaded from environment variables with safe defaults.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


def _default_db_path() -> str:
    # project root / data / matchday.db
    return str(Path(__file__).resolve().parent.parent / "data" / "matchday.db")


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime configuration. Every field can be overridden with a MATCHDAY_* variable."""

    app_name: str = "Matchday API"
    env: str = "dev"
    db_path: str = ""  # set from from_env
    log_level: str = "INFO"
    jwt_secret_key: str = "matchday-dev-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    standings_cache_ttl: float = 60.0
    form_cache_ttl: float = 60.0
    live_cache_ttl: float = 15.0
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    admin_username: str | None = None
    admin_password: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        origins = os.getenv("MATCHDAY_CORS_ORIGINS")
        return cls(
            app_name=os.getenv("MATCHDAY_APP_NAME", cls.app_name),
            env=os.getenv("MATCHDAY_ENV", cls.env),
            db_path=os.getenv("MATCHDAY_DB_PATH") or _default_db_path(),
            log_level=os.getenv("MATCHDAY_LOG_LEVEL", cls.log_level),
            jwt_secret_key=os.getenv("MATCHDAY_JWT_SECRET_KEY", cls.jwt_secret_key),
            access_token_expire_minutes=int(
                os.getenv("MATCHDAY_ACCESS_TOKEN_EXPIRE_MINUTES", cls.access_token_expire_minutes)
            ),
            standings_cache_ttl=float(os.getenv("MATCHDAY_STANDINGS_CACHE_TTL", cls.standings_cache_ttl)),
            form_cache_ttl=float(os.getenv("MATCHDAY_FORM_CACHE_TTL", cls.form_cache_ttl)),
            live_cache_ttl=float(os.getenv("MATCHDAY_LIVE_CACHE_TTL", cls.live_cache_ttl)),
            cors_origins=_split_csv(origins) if origins else ["http://localhost:3000"],
            admin_username=os.getenv("MATCHDAY_ADMIN_USERNAME") or None,
            admin_password=os.getenv("MATCHDAY_ADMIN_PASSWORD") or None,
        )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings.from_env()
