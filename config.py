"""
Configuration management for FlipLedger.
Uses pydantic-settings for type-safe, centralized configuration.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'  # Allow extra fields in .env for flexibility
    )

    # Database
    database_url: str = "sqlite:///flip_ledger.db"
    db_echo: bool = False

    # Timeline projection
    starting_net_worth: int = 198_000_000  # GP held before the first imported day
    unit_investment_estimate: int = 100_000  # Rough GP invested per finished flip

    # Aggregation fan-out (1 = run sub-queries sequentially)
    aggregation_workers: int = 4

    # Import
    max_import_bytes: int = 10 * 1024 * 1024

    log_level: str = "INFO"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
