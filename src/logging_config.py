"""Logging setup shared by every process that embeds the cycle engine."""

from __future__ import annotations

import logging
import sys

from src.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(settings: Settings | None = None) -> logging.Logger:
    """Configure root logging from settings and return the app logger.

    ``DEBUG`` in settings forces debug-level output regardless of ``log_level``.
    """
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stdout,
    )
    logger = logging.getLogger("endotrack")
    logger.setLevel(level)
    logger.info(
        "Logging configured for %s v%s [%s]",
        settings.app_name,
        settings.app_version,
        settings.environment,
    )
    return logger
