"""Tests for application logging setup."""

from __future__ import annotations

import logging

import pytest

from src.config import Settings
from src.logging_config import configure_logging


@pytest.fixture(autouse=True)
def restore_app_logger_level():
    logger = logging.getLogger("endotrack")
    level = logger.level
    yield
    logger.setLevel(level)


class TestConfigureLogging:
    def test_returns_app_logger(self) -> None:
        logger = configure_logging(Settings(log_level="WARNING"))
        assert logger.name == "endotrack"
        assert logger.level == logging.WARNING

    def test_debug_forces_debug_level(self) -> None:
        logger = configure_logging(Settings(debug=True, log_level="ERROR"))
        assert logger.level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self) -> None:
        logger = configure_logging(Settings(log_level="chatty"))
        assert logger.level == logging.INFO

    def test_engine_loggers_inherit(self) -> None:
        configure_logging(Settings(log_level="ERROR"))
        child = logging.getLogger("endotrack.cycles.engine")
        assert child.getEffectiveLevel() == logging.ERROR

    def test_exported_from_engine_package(self) -> None:
        from src.cycles import configure_logging as exported

        assert exported is configure_logging
