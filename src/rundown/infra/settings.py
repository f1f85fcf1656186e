"""
Application settings for the rundown engine.

This module defines all configuration settings using Pydantic BaseSettings.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_roles(value: str) -> frozenset[str]:
    return frozenset(part.strip().upper() for part in value.split(",") if part.strip())


class Settings(BaseSettings):
    """Main application settings using Pydantic BaseSettings."""

    # Database settings
    database_url: str = Field(
        default="sqlite:///rundown.db",
        alias="DATABASE_URL",
    )
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    echo_sql: bool = Field(default=False, alias="ECHO_SQL")
    pool_size: int = Field(default=5, alias="DB_POOL_SIZE")
    max_overflow: int = Field(default=10, alias="DB_MAX_OVERFLOW")
    pool_timeout: int = Field(default=30, alias="DB_POOL_TIMEOUT")
    connect_timeout: int = Field(default=30, alias="DB_CONNECT_TIMEOUT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    env: str = Field(default="dev", alias="ENV")  # dev|prod|test

    # Reclamation
    retention_days: int = Field(default=7, alias="RETENTION_DAYS")
    purge_interval_seconds: int = Field(default=3600, alias="PURGE_INTERVAL_SECONDS")

    # Role policy (comma-separated role names)
    lock_override_roles_raw: str = Field(default="ADMIN", alias="LOCK_OVERRIDE_ROLES")
    purge_roles_raw: str = Field(default="ADMIN", alias="PURGE_ROLES")
    restore_roles_raw: str = Field(default="ADMIN", alias="RESTORE_ROLES")
    trash_view_all_roles_raw: str = Field(default="ADMIN,PRODUCER", alias="TRASH_VIEW_ALL_ROLES")
    approver_roles_raw: str = Field(default="ADMIN,PRODUCER,EDITOR", alias="APPROVER_ROLES")
    bulletin_order_roles_raw: str = Field(default="ADMIN,EDITOR", alias="BULLETIN_ORDER_ROLES")
    scheduler_roles_raw: str = Field(default="ADMIN,PRODUCER,EDITOR", alias="SCHEDULER_ROLES")

    default_planned_duration_secs: int = Field(default=1800, alias="DEFAULT_PLANNED_DURATION_SECS")

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def lock_override_roles(self) -> frozenset[str]:
        return _split_roles(self.lock_override_roles_raw)

    @property
    def purge_roles(self) -> frozenset[str]:
        return _split_roles(self.purge_roles_raw)

    @property
    def restore_roles(self) -> frozenset[str]:
        return _split_roles(self.restore_roles_raw)

    @property
    def trash_view_all_roles(self) -> frozenset[str]:
        return _split_roles(self.trash_view_all_roles_raw)

    @property
    def approver_roles(self) -> frozenset[str]:
        return _split_roles(self.approver_roles_raw)

    @property
    def bulletin_order_roles(self) -> frozenset[str]:
        return _split_roles(self.bulletin_order_roles_raw)

    @property
    def scheduler_roles(self) -> frozenset[str]:
        return _split_roles(self.scheduler_roles_raw)


def _resolve_env_file() -> str | None:
    # 1) Explicit override
    explicit = os.getenv("RUNDOWN_ENV_FILE")
    if explicit and Path(explicit).is_file():
        return explicit

    # 2) CWD .env
    cwd_env = Path.cwd() / ".env"
    if cwd_env.is_file():
        return str(cwd_env)

    # 3) Walk up from this file to find nearest .env
    here = Path(__file__).resolve()
    for parent in here.parents:
        candidate = parent / ".env"
        if candidate.is_file():
            return str(candidate)
    return None


# Global settings instance (load from best-effort .env discovery)
_env_file = _resolve_env_file()
settings = Settings(_env_file=_env_file) if _env_file else Settings()  # type: ignore[call-arg]
