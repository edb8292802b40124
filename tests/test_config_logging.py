"""Tests for settings and logging setup."""

import logging

import pytest

from kturkey.config import DEFAULT_CURRENCY, default_db_path, load_settings
from kturkey.logging_setup import get_log_level, setup_logging


@pytest.fixture
def clean_env(monkeypatch):
    """Remove KTURKEY_* variables for the test."""
    for name in ("KTURKEY_DB_PATH", "KTURKEY_DEFAULT_CURRENCY", "KTURKEY_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def restore_logger():
    """Restore the package logger after the test."""
    logger = logging.getLogger("kturkey")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestSettings:
    """Tests for load_settings."""

    def test_defaults(self, clean_env):
        """Test defaults when nothing is configured."""
        settings = load_settings()
        assert settings.db_path == default_db_path()
        assert settings.default_currency == DEFAULT_CURRENCY
        assert settings.log_level == "WARNING"

    def test_from_environment(self, clean_env, tmp_path):
        """Test values are read from the environment."""
        clean_env.setenv("KTURKEY_DB_PATH", str(tmp_path / "site.db"))
        clean_env.setenv("KTURKEY_DEFAULT_CURRENCY", " eur ")
        clean_env.setenv("KTURKEY_LOG_LEVEL", "debug")

        settings = load_settings()
        assert settings.db_path == str(tmp_path / "site.db")
        assert settings.default_currency == "EUR"
        assert settings.log_level == "DEBUG"

    def test_invalid_values_fall_back(self, clean_env):
        """Test unknown currency and level values fall back to defaults."""
        clean_env.setenv("KTURKEY_DEFAULT_CURRENCY", "EURO")
        clean_env.setenv("KTURKEY_LOG_LEVEL", "chatty")

        settings = load_settings()
        assert settings.default_currency == DEFAULT_CURRENCY
        assert settings.log_level == "WARNING"


class TestLogging:
    """Tests for logging setup."""

    def test_get_log_level(self, clean_env):
        """Test level names map to logging constants."""
        assert get_log_level("info") == logging.INFO
        assert get_log_level("bogus") == logging.WARNING
        assert get_log_level() == logging.WARNING

        clean_env.setenv("KTURKEY_LOG_LEVEL", "ERROR")
        assert get_log_level() == logging.ERROR

    def test_setup_replaces_handlers(self, restore_logger):
        """Test repeated setup leaves one handler at the requested level."""
        setup_logging("INFO")
        logger = setup_logging("DEBUG")

        assert logger is restore_logger
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.handlers[0].level == logging.DEBUG

    def test_package_loggers_propagate(self, restore_logger, caplog):
        """Test module loggers still reach pytest's capture handler."""
        setup_logging("INFO")
        with caplog.at_level(logging.INFO, logger="kturkey"):
            logging.getLogger("kturkey.domain.ledger").info("replayed")
        assert "replayed" in caplog.text
