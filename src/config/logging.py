"""Logging configuration for the application."""

import logging
import sys

from src.config.settings import Settings


def setup_logging(settings: Settings) -> None:
    """
    Configure application logging.

    Args:
        settings: Application settings
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    # Pool chatter is only useful when debugging connections
    logging.getLogger("psycopg.pool").setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured: level=%s", logging.getLevelName(level))
