"""Tests for settings __init__.py module.

Covers: Settings class, get_masked_settings
"""

import pytest
from pydantic import ValidationError

from src.settings import Settings, get_masked_settings, settings


class TestSettings:
    """Tests for the aggregated Settings object."""

    @staticmethod
    def test_singleton_exposes_sections() -> None:
        """The global instance carries every configuration section."""
        assert settings.database is not None
        assert settings.security is not None
        assert settings.seed is not None
        assert settings.cors is not None

    @staticmethod
    def test_environment_normalized(monkeypatch: pytest.MonkeyPatch) -> None:
        """ENVIRONMENT is lowercased."""
        monkeypatch.setenv("ENVIRONMENT", "Production")
        instance = Settings()
        assert instance.environment == "production"
        assert instance.is_production is True

    @staticmethod
    def test_invalid_environment(monkeypatch: pytest.MonkeyPatch) -> None:
        """Unknown environments are rejected."""
        monkeypatch.setenv("ENVIRONMENT", "staging")
        with pytest.raises(ValidationError):
            Settings()

    @staticmethod
    def test_development_is_not_production(monkeypatch: pytest.MonkeyPatch) -> None:
        """Secure cookies are only forced in production."""
        monkeypatch.setenv("ENVIRONMENT", "development")
        assert Settings().is_production is False


class TestGetMaskedSettings:
    """Tests for get_masked_settings."""

    @staticmethod
    def test_secrets_masked(monkeypatch: pytest.MonkeyPatch) -> None:
        """Database password and seed password never appear in clear."""
        monkeypatch.setattr(settings.database, "password", "db-secret")
        monkeypatch.setattr(settings.seed, "admin_password", "seed-secret")

        masked = get_masked_settings()

        assert masked["database"]["password"] == "***MASKED***"
        assert masked["seed"]["admin_password"] == "***MASKED***"
        assert "db-secret" not in str(masked)
        assert "seed-secret" not in str(masked)

    @staticmethod
    def test_empty_secrets_left_alone(monkeypatch: pytest.MonkeyPatch) -> None:
        """Unset secrets are not replaced by the mask."""
        monkeypatch.setattr(settings.seed, "admin_password", None)
        assert get_masked_settings()["seed"]["admin_password"] is None
