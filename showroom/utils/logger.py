"""Loguru sinks for the storefront, the admin console and the CLI."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import LoggingConfig, get_config

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> "
    "<cyan>{name}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} {level: <7} {name}:{line} | {message}"


def _add_file_sink(path: str, level: str, settings: LoggingConfig):
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        path,
        format=FILE_FORMAT,
        level=level,
        rotation=settings.rotation,
        retention=settings.retention,
        compression="zip",
    )


def setup_logging(log_level: Optional[str] = None, log_file: Optional[str] = None):
    """Replace loguru's default handler with the configured sinks.

    ``log_level`` and ``log_file`` fall back to the ``logging`` config section.
    An empty ``log_file`` keeps output on stderr only.
    """
    settings = get_config().logging
    level = (log_level or settings.level).upper()
    path = settings.file if log_file is None else log_file

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)
    if path:
        _add_file_sink(path, level, settings)

    logger.debug(f"Logging to stderr{f' and {path}' if path else ''} at {level}")
