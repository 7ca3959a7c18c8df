"""Logging setup.

All log output goes to stderr; stdout is reserved for the module adapter's
JSON result document.
"""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def configure_logging(verbose: bool = False, *, quiet: bool = False) -> None:
    """Route loguru output to stderr.

    Args:
        verbose: Emit DEBUG records (helm command lines, tunnel lifecycle)
        quiet: Only emit warnings and errors
    """
    level = "DEBUG" if verbose else "WARNING" if quiet else "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=None)
