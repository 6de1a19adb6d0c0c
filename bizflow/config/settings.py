"""
Configuration Management for BizFlow

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every setting has a working default so a fresh checkout runs against a
local SQLite file without any .env present.
"""

from functools import lru_cache
from typing import Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        default="sqlite:///./bizflow.db",
        description="SQLAlchemy database URL (sqlite or postgresql)"
    )
    echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )
    pool_pre_ping: bool = Field(
        default=True,
        description="Test pooled connections before handing them out"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Only the backends we ship schema support for."""
        if not v.startswith(("sqlite", "postgresql")):
            raise ValueError(
                f"Unsupported database URL: {v}. Use sqlite:// or postgresql://"
            )
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class AuthSettings(BaseSettings):
    """Authentication and credential rules."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    bcrypt_rounds: int = Field(
        default=10,
        ge=4,
        le=16,
        description="bcrypt cost factor for new password hashes"
    )


class SeedSettings(BaseSettings):
    """Initial superadmin created on an empty database."""

    model_config = SettingsConfigDict(
        env_prefix="INITIAL_ADMIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    username: str = Field(
        default="Admin",
        description="Username of the seeded superadmin"
    )
    password: str = Field(
        default="Password123",
        description="Password of the seeded superadmin"
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

    # Presentation
    items_per_page: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Rows per page in paginated lists"
    )
    currency: str = Field(
        default="IDR",
        min_length=3,
        max_length=3,
        description="ISO currency code used when formatting amounts"
    )
    currency_symbol: Optional[str] = Field(
        default="Rp",
        description="Symbol shown in front of amounts"
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

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def seed(self) -> SeedSettings:
        return SeedSettings()

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


def validate_all_settings() -> dict[str, Union[bool, str]]:
    """
    Validate all settings sections.

    Returns a dict of {section_name: is_valid}, with a
    `<section>_error` entry for each section that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("database", "auth", "seed", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
