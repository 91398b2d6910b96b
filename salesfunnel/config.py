"""Application configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class FunnelSettings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///salesfunnel.db"
    echo_sql: bool = False
    app_title: str = "Sales Funnel"
    log_level: str = "INFO"

    auth_secret: str = "dev-insecure-secret"
    auth_cookie_name: str = "sf_session"
    auth_cookie_secure: bool = False
    auth_session_ttl_seconds: int = 86400
    password_min_length: int = 6

    # Reject stage names outside the fixed enumeration
    strict_stages: bool = True
    # Re-derive expected_revenue from value/probability on every write
    recompute_expected_revenue: bool = True

    model_config = {"env_prefix": "FUNNEL_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def templates_dir(self) -> Path:
        return self.base_dir / "templates"

    @property
    def static_dir(self) -> Path:
        return self.base_dir / "static"


settings = FunnelSettings()
