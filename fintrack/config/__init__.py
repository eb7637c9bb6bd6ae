"""Configuration package."""

from fintrack.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    TrackerSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "Settings",
    "TrackerSettings",
    "get_settings",
    "validate_all_settings",
]
