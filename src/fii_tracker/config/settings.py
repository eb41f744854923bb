"""Application settings and configuration."""

from pathlib import Path
from typing import Optional

import pytz
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory based on platform."""
    return Path.home() / "Documents" / "FII Tracker Data"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FII_",
    )

    app_name: str = "FII Portfolio Tracker"

    # Data directory (all app data lives here)
    data_dir: Optional[Path] = None

    # Database URL (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None

    log_level: str = "INFO"

    # Market clock (B3 trades in Sao Paulo local time)
    market_timezone: str = "America/Sao_Paulo"
    market_open_hour: int = 10
    market_close_hour: int = 18
    refresh_interval_seconds: int = 300

    # Staleness TTLs
    quote_ttl_seconds: int = 15 * 60
    fundamentals_ttl_seconds: int = 24 * 60 * 60

    # External calls
    retry_max_attempts: int = 3
    retry_initial_delay_seconds: float = 1.0
    price_history_limit: int = 365
    use_stub_providers: bool = True
    quote_ticker_suffix: str = ".SA"

    @field_validator("market_timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        if v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "fii_tracker.db"
        return f"sqlite:///{db_path}"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
