"""Logging configuration for CitySec Geocoder using loguru."""

import sys
from pathlib import Path

from loguru import logger

from citysec_geocoder.config import Settings


def _is_geocode_outcome(record) -> bool:
    return "geocode" in record["extra"]


def setup_logging(settings: Settings) -> None:
    """
    Configure loguru logging based on settings.

    Besides the console and the rotating application log, resolution
    outcomes logged with ``logger.bind(geocode=...)`` are written as JSON
    lines to ``geocode_log_file`` so they can be audited later.

    Args:
        settings: Application settings containing log levels and file paths.
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    )

    Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        settings.log_file,
        level=settings.log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
    )

    if settings.geocode_log_file:
        Path(settings.geocode_log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            settings.geocode_log_file,
            level="INFO",
            filter=_is_geocode_outcome,
            serialize=True,
            rotation="10 MB",
            retention="90 days",
        )

    logger.debug(
        "Logging configured: level={}, file={}, audit={}",
        settings.log_level,
        settings.log_file,
        settings.geocode_log_file,
    )
