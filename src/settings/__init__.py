"""Centralized configuration for the WhutMovie backend.

Configuration strategy:
- CRITICAL settings (admin seed password): Require explicit .env configuration.
  No defaults. Seeding refuses to run if missing.
- INFRASTRUCTURE settings (Logging, Database pool, API ports, session
  lifetime): Can use safe defaults. Override via .env as needed.

All configuration values are sourced from environment variables (.env file).

Usage:
    from src.settings import settings

    settings.database.sync_url
    settings.security.session_cookie_name
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.settings.api import APISettings, CORSSettings, SecuritySettings
from src.settings.base import LoggingSettings, PathsSettings
from src.settings.database import DatabaseSettings
from src.settings.seed import SeedSettings

__all__ = [
    # Main
    "Settings",
    "settings",
    # Base
    "PathsSettings",
    "LoggingSettings",
    # Database
    "DatabaseSettings",
    # API
    "APISettings",
    "SecuritySettings",
    "CORSSettings",
    # Seed
    "SeedSettings",
    # Utilities
    "get_masked_settings",
]


# =============================================================================
# GLOBAL SETTINGS
# =============================================================================


class Settings(BaseSettings):
    """Global application settings.

    Aggregates all configuration sections into a single object.
    Access via the singleton: `from src.settings import settings`
    """

    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # Paths and logging
    paths: PathsSettings = Field(default_factory=PathsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Database
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    # API
    api: APISettings = Field(default_factory=APISettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    # Initial data
    seed: SeedSettings = Field(default_factory=SeedSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"development", "production", "test"}
        v_lower = v.lower()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid ENVIRONMENT. Valid: {valid_envs}")
        return v_lower

    @property
    def is_production(self) -> bool:
        """True when running in production (enables secure cookies)."""
        return self.environment == "production"

    def model_post_init(self, _: Any) -> None:
        """Initialize directories after settings are loaded."""
        self.paths.ensure_directories()


# =============================================================================
# SINGLETON INSTANCE
# =============================================================================

settings = Settings()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_masked_settings() -> dict[str, Any]:
    """Return settings dict with sensitive values masked.

    Returns:
        Configuration dictionary safe for logging.
    """
    config = settings.model_dump()
    mask = "***MASKED***"

    # Paths to mask (section, key)
    secrets = [
        ("database", "password"),
        ("database", "url"),
        ("seed", "admin_password"),
    ]

    for section, key in secrets:
        if section in config and key in config[section] and config[section][key]:
            config[section][key] = mask

    return config
