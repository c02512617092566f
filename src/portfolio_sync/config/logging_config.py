"""Logging configuration."""

import logging
import sys
from typing import Optional

from portfolio_sync.config.settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "portfolio_sync.log"

QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore")


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def build_handlers(settings: Settings) -> list[logging.Handler]:
    """Stdout always; a file under the data directory when enabled."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_to_file:
        log_path = settings.get_log_dir() / LOG_FILE_NAME
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    return handlers


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure application logging."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=_level(settings.log_level),
        format=LOG_FORMAT,
        handlers=build_handlers(settings),
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)

    if settings.sync_log_level:
        logging.getLogger("portfolio_sync.services.sync_coordinator").setLevel(
            _level(settings.sync_log_level)
        )
