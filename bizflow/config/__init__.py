"""Configuration package."""

from bizflow.config.settings import (
    AppSettings,
    AuthSettings,
    DatabaseSettings,
    SeedSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AuthSettings",
    "DatabaseSettings",
    "SeedSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
