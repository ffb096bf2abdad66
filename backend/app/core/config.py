"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        env_prefix="ECO_",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = "Eco Monitor"
    host: str = "0.0.0.0"
    port: int = 8000
    secret_key: str = "change-me"
    encryption_key: str | None = None

    # Database
    database_url: str = "sqlite+aiosqlite:///./eco_monitor.db"

    # Sessions
    session_ttl_hours: int = 720  # 30 days, sliding
    session_cookie_name: str = "session_token"
    session_cookie_secure: bool = True
    allowed_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Scheduler
    scheduler_enabled: bool = True
    alert_auto_resolve_minutes: int = 5
    raw_data_batch_size: int = 100

    # Exports
    export_dir: str = "exports"
    export_retention_days: int = 30
    export_default_limit: int = 10000

    # Backups
    backup_dir: str = "backups"
    uploads_dir: str = "uploads"
    pg_dump_path: str = "pg_dump"
    backup_db_host: str = "localhost"
    backup_db_port: int = 5432
    backup_db_name: str | None = None
    backup_db_user: str | None = None
    backup_db_password: str | None = None

    # Notifications and housekeeping
    default_language: str = "uk"
    event_retention_days: int = 30
    activity_log_retention_days: int = 90

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()
