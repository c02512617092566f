"""Application settings and configuration."""

from datetime import date
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory based on platform."""
    return Path.home() / ".portfolio-sync"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PORTFOLIO_SYNC_",
        extra="ignore",
    )

    app_name: str = "Portfolio Sync"
    app_version: str = "0.1.0"

    # Data directory (device cache and local server data live here)
    data_dir: Optional[Path] = None

    # Remote store database (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None

    # On-device cache database (derived from data_dir if not set explicitly)
    local_database_url: Optional[str] = None

    log_level: str = "INFO"
    # Also write logs to <data_dir>/logs/portfolio_sync.log
    log_to_file: bool = False
    # Level for the sync coordinator, which logs every debounced write
    sync_log_level: Optional[str] = None

    # Sync behavior
    local_namespace: str = "portfolio_sync"
    sync_debounce_seconds: float = 2.0
    reconcile_interval_seconds: Optional[float] = None

    # Remote store over HTTP; in-process SQL store when unset
    remote_base_url: Optional[str] = None
    remote_timeout_seconds: float = 5.0

    # Market data settings
    market_data_cache_ttl_seconds: int = 60

    # Portfolio entries without an explicit target are measured from here
    entry_target_baseline: date = date(2024, 1, 1)

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get remote store database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "remote.db"
        return f"sqlite:///{db_path}"

    def get_local_database_url(self) -> str:
        """Get device cache database URL, deriving from data_dir if not set."""
        if self.local_database_url:
            return self.local_database_url
        db_path = self.get_data_dir() / "local_cache.db"
        return f"sqlite:///{db_path}"

    def get_log_dir(self) -> Path:
        """Get the log directory."""
        log_dir = self.get_data_dir() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir


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
