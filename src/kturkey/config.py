"""Settings read from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CURRENCY = "TRY"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def default_db_path() -> str:
    """Return the default database path, ~/.kturkey/kturkey.db."""
    return str(Path.home() / ".kturkey" / "kturkey.db")


@dataclass(frozen=True)
class Settings:
    """Process-wide settings."""

    db_path: str
    default_currency: str = DEFAULT_CURRENCY
    log_level: str = DEFAULT_LOG_LEVEL


def load_settings() -> Settings:
    """Load settings from KTURKEY_* environment variables.

    Returns:
        Settings with defaults filled in for unset or unknown values
    """
    db_path = os.getenv("KTURKEY_DB_PATH") or default_db_path()

    currency = (os.getenv("KTURKEY_DEFAULT_CURRENCY") or DEFAULT_CURRENCY).strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        currency = DEFAULT_CURRENCY

    log_level = (os.getenv("KTURKEY_LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
    if log_level not in LOG_LEVELS:
        log_level = DEFAULT_LOG_LEVEL

    return Settings(db_path=db_path, default_currency=currency, log_level=log_level)
