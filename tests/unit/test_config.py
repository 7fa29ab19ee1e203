"""Tests for bifslide.config module."""

import pytest
from pydantic import ValidationError

from bifslide.config import Settings


class TestSettings:
    """Tests for the Settings class."""

    def test_default_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that default values are set correctly."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.delenv("QUICKHASH_MAX_BYTES", raising=False)

        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
        )

        assert settings.LOG_LEVEL == "INFO"
        assert settings.LOG_FORMAT == "console"
        assert settings.QUICKHASH_MAX_BYTES == 5 * 1024 * 1024

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that environment variables override defaults."""
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("QUICKHASH_MAX_BYTES", "1024")

        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
        )

        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.QUICKHASH_MAX_BYTES == 1024

    def test_log_format_options(self) -> None:
        """Test that LOG_FORMAT accepts valid options."""
        settings = Settings(
            LOG_FORMAT="json",
            _env_file=None,  # type: ignore[call-arg]
        )
        assert settings.LOG_FORMAT == "json"

    def test_quickhash_limit_must_be_positive(self) -> None:
        """Test that a non-positive hash limit is rejected."""
        with pytest.raises(ValidationError):
            Settings(
                QUICKHASH_MAX_BYTES=0,
                _env_file=None,  # type: ignore[call-arg]
            )

    def test_fixture_settings(self, test_settings: Settings) -> None:
        """Test that the shared fixture builds debug settings."""
        assert test_settings.LOG_LEVEL == "DEBUG"
