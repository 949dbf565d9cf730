"""Initial data settings.

The admin password has no default: seeding refuses to run until
``ADMIN_PASSWORD`` is set explicitly.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SeedSettings(BaseSettings):
    """Seed configuration for the first admin account.

    Attributes:
        admin_username: Username of the seeded admin.
        admin_password: Plaintext password for the seeded admin.
    """

    admin_username: str = Field(default="admin", alias="ADMIN_USERNAME")
    admin_password: str | None = Field(default=None, alias="ADMIN_PASSWORD")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_configured(self) -> bool:
        """Check if an admin password was provided."""
        return bool(self.admin_password)
