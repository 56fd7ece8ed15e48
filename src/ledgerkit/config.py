"""Configuration settings for ledgerkit.

Values are read from ``LEDGERKIT_*`` environment variables (or a ``.env``
file), e.g. ``LEDGERKIT_CONFIRM_THRESHOLD=500``.
"""

from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Ledger settings."""

    # Storage
    database_path: Optional[str] = None  # None means ~/.ledgerkit/ledgerkit.db

    # Step-up thresholds (strictly greater than triggers)
    confirm_threshold: Decimal = Decimal("1000")
    reauth_threshold: Decimal = Decimal("2000")
    reauth_password_hash: str = ""  # bcrypt hash; empty disables re-authentication

    # Bulk import
    import_timeout_seconds: float = 60.0
    import_row_delay_seconds: float = 0.1

    # Logging
    log_level: str = "WARNING"
    log_format: str = "text"  # text or json

    model_config = SettingsConfigDict(
        env_prefix="LEDGERKIT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()


def get_settings() -> Settings:
    """Get global settings instance."""
    return settings


def reload_settings() -> Settings:
    """Reload settings from the environment."""
    global settings
    settings = Settings()
    return settings
