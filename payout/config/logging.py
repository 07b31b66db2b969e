"""
Logging configuration.

Configures loguru sinks for services, jobs and scripts.
"""

import sys

from loguru import logger

from payout.config.settings import settings


def setup_logging(log_file: str | None = None, console: bool = True) -> None:
    """Configure logger with console output and file rotation."""
    logger.remove()

    if console:
        logger.add(
            sys.stderr,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
            level=settings.log_level,
        )

    logger.add(
        log_file or settings.log_file,
        rotation="1 day",
        retention="30 days",
        level=settings.log_level,
        encoding="utf-8",
    )
