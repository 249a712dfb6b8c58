"""Logging configuration for the lunchstats application."""

import logging
import sys
from typing import Optional

from .config import app_config


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger with a console handler.

    Args:
        level: Optional level name overriding LOG_LEVEL from the environment
    """
    level_name = (level or app_config.log_level).upper()
    if app_config.debug and level is None:
        level_name = 'DEBUG'

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Clear existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))
    root_logger.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger('httpx').setLevel(logging.WARNING)
