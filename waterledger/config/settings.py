"""
Configuration Management for Water Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Ledger thresholds (overdue window, week start, balance bands) and the
storage layout are read once and passed down, never looked up ad hoc.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key/value storage layout."""

    model_config = SettingsConfigDict(
        env_prefix="WATERLEDGER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory used by the file-backed key/value store"
    )
    data_key_prefix: str = Field(
        default="aab_data_",
        description="Prefix of the per-business collections key"
    )
    session_key: str = Field(
        default="aab_current_user",
        description="Key holding the current session identity"
    )
    quota_bytes: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional size cap per stored value (None = unlimited)"
    )


class LedgerSettings(BaseSettings):
    """Thresholds used by the ledger engine and reports."""

    model_config = SettingsConfigDict(
        env_prefix="WATERLEDGER_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    overdue_after_days: int = Field(
        default=30,
        ge=1,
        description="Days since last delivery after which a due is overdue"
    )
    # Python weekday numbering: Monday = 0 ... Sunday = 6
    week_start: int = Field(
        default=6,
        ge=0,
        le=6,
        description="First day of the reporting week"
    )
    high_balance_threshold: float = Field(
        default=1000.0,
        ge=0,
        description="Outstanding above this is flagged as a high balance"
    )
    top_customers_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Rows in the top-customers report"
    )
    default_rate: float = Field(
        default=120.0,
        gt=0,
        description="Per-bottle rate suggested for new customers"
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

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level for diagnostics"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

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

    Returns a dict of {setting_name: is_valid}, plus `<name>_error`
    entries for the groups that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "ledger", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
