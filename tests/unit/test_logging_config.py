"""
Unit tests for logging setup.

Tests cover:
- Handlers built from settings (stdout, optional file)
- Third-party noise reduction
- Separate level for the sync coordinator
"""

import logging

import pytest

from portfolio_sync.config.logging_config import LOG_FILE_NAME, build_handlers, setup_logging
from portfolio_sync.config.settings import Settings

SYNC_LOGGER = "portfolio_sync.services.sync_coordinator"


@pytest.fixture
def restore_levels():
    """Put touched logger levels back after each test."""
    names = [SYNC_LOGGER, "sqlalchemy.engine", "httpx", "httpcore", "uvicorn"]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


class TestBuildHandlers:
    """Tests for build_handlers."""

    def test_stdout_only_by_default(self, tmp_path):
        handlers = build_handlers(Settings(data_dir=tmp_path))

        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)

    def test_file_handler_under_data_dir(self, tmp_path):
        """
        GIVEN log_to_file enabled
        WHEN handlers are built
        THEN a file handler writes into <data_dir>/logs
        """
        handlers = build_handlers(Settings(data_dir=tmp_path, log_to_file=True))

        try:
            file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
            assert len(file_handlers) == 1
            assert file_handlers[0].baseFilename == str(tmp_path / "logs" / LOG_FILE_NAME)
        finally:
            for handler in handlers:
                handler.close()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_quiets_third_party_loggers(self, tmp_path, restore_levels):
        setup_logging(Settings(data_dir=tmp_path))

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_sync_log_level(self, tmp_path, restore_levels):
        setup_logging(Settings(data_dir=tmp_path, sync_log_level="debug"))

        assert logging.getLogger(SYNC_LOGGER).level == logging.DEBUG
