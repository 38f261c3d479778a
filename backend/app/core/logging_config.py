"""Logging setup - one stdout handler on the root logger."""

import logging
import sys

from app.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> None:
    """Configure the root logger from settings.LOG_LEVEL (falls back to INFO)."""
    numeric_level = getattr(logging, settings.LOG_LEVEL.upper(), None)
    invalid = not isinstance(numeric_level, int)
    if invalid:
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    # Avoid duplicate output if called twice (e.g. reload)
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    if invalid:
        logging.getLogger(__name__).warning(
            "Invalid LOG_LEVEL %r, defaulting to INFO", settings.LOG_LEVEL
        )
