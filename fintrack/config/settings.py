"""
Configuration Management for fintrack

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Business limits (maximum amounts, history window, chart budgets) live next to
the storage configuration so a deployment can see every tunable in one place.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrackerSettings(BaseSettings):
    """Business limits used by validation, aggregation and the dashboard."""

    model_config = SettingsConfigDict(
        env_prefix="TRACKER_",
        extra="ignore"
    )

    max_amount: float = Field(
        default=1_000_000.0,
        gt=0,
        description="Largest accepted transaction amount (inclusive)"
    )
    max_spending_limit: float = Field(
        default=1_000_000.0,
        ge=0,
        description="Largest accepted category spending limit (inclusive)"
    )
    history_years: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many years back a transaction date may go"
    )
    recent_transactions_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of transactions in the recent activity view"
    )
    chart_max_points: int = Field(
        default=30,
        ge=2,
        le=1000,
        description="Point budget for the running-balance series"
    )
    activity_days: int = Field(
        default=7,
        ge=1,
        le=90,
        description="Number of days in the daily activity view"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # One worksheet per collection
    transactions_sheet_name: str = Field(
        default="transactions",
        description="Worksheet holding transaction documents"
    )
    categories_sheet_name: str = Field(
        default="categories",
        description="Worksheet holding category documents"
    )
    audit_sheet_name: str = Field(
        default="audit",
        description="Worksheet holding audit events"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v

    def sheet_for(self, collection: str) -> str:
        """Worksheet title for a collection name."""
        return {
            "transactions": self.transactions_sheet_name,
            "categories": self.categories_sheet_name,
            "audit": self.audit_sheet_name,
        }.get(collection, collection)


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
    storage_backend: Literal["memory", "google_sheets"] = Field(
        default="memory",
        description="Which document store backs the registry and ledger"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )


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
    def tracker(self) -> TrackerSettings:
        return TrackerSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for every section that failed to load.
    """
    results = {}
    settings = get_settings()

    for name in ("tracker", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
