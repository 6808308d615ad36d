"""
Configuration Management for Budge

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage location, alert horizon and logging behaviour are all read
once and validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local record store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGE_STORAGE_",
        extra="ignore"
    )

    backend: Literal["sqlite", "memory"] = Field(
        default="sqlite",
        description="Which store backend to construct"
    )
    db_path: Path = Field(
        default=Path("~/.budge/budge.db"),
        description="Location of the SQLite database file"
    )
    connect_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How long sqlite waits on a locked database"
    )
    connect_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts made to open the database before giving up"
    )

    @field_validator('db_path')
    @classmethod
    def expand_db_path(cls, v: Path) -> Path:
        """Expand ~ so the path is usable as-is."""
        return v.expanduser()


class AlertSettings(BaseSettings):
    """Due-soon alerting configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGE_ALERTS_",
        extra="ignore"
    )

    window_days: int = Field(
        default=3,
        ge=0,
        le=31,
        description="Alert when a payment is due within this many days"
    )
    upcoming_days: int = Field(
        default=30,
        ge=0,
        description="Horizon for the upcoming payments list"
    )
    upcoming_limit: int = Field(
        default=5,
        ge=1,
        description="Maximum entries in the upcoming payments list"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local logs"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (console rendering otherwise)"
    )

    # Ledger defaults
    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency used when onboarding doesn't pick one"
    )
    max_amount: float = Field(
        default=10_000_000.0,
        gt=0,
        description="Largest amount accepted on a single record (sanity check)"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def alerts(self) -> AlertSettings:
        return AlertSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "alerts", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
