"""
Configuration Management for Liquid Bills

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here: the remote store credentials, the
local cache location and the series horizon. Sections are loaded lazily so
the app can still start (from the local cache) when the remote store is not
configured.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        min_length=1,
        description="ID of the spreadsheet holding the bills table"
    )

    # Worksheet names within the spreadsheet
    bills_sheet_name: str = Field(
        default="Bills",
        description="Name of the worksheet for bills"
    )
    activity_sheet_name: str = Field(
        default="ActivityLog",
        description="Name of the worksheet for the activity log"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (it might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


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

    # Remote store
    storage_backend: Literal["google_sheets", "memory"] = Field(
        default="google_sheets",
        description="Which remote table store to use"
    )

    # Local cache mirror
    cache_dir: str = Field(
        default="./data",
        description="Directory holding the local cache blobs"
    )
    cache_key: str = Field(
        default="liquid_bills_local_cache",
        min_length=1,
        description="Fixed key of the cached bill collection"
    )

    # Series expansion
    series_horizon_months: int = Field(
        default=12,
        ge=1,
        le=60,
        description="How many months ahead a recurring series is generated"
    )

    # Export / display
    export_filename_prefix: str = Field(
        default="backup_rachunki",
        description="Prefix of the exported CSV file name"
    )
    currency_symbol: str = Field(
        default="zł",
        description="Currency symbol shown next to amounts"
    )

    @property
    def cache_path(self) -> Path:
        """Cache directory as a resolved path."""
        return Path(self.cache_dir).resolve()


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus `<name>_error`
    entries for the sections that failed to load.
    """
    results: dict[str, object] = {}

    settings = get_settings()

    sections = {
        "google_sheets": lambda: settings.google_sheets,
        "app": lambda: settings.app,
    }
    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
