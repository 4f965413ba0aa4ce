"""
Logging setup shared by the API process and the CLI entry point.

Usage:
    from app.core.logging import setup_logging
    setup_logging(settings.LOG_LEVEL)
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every request or query at INFO/DEBUG
NOISY_LOGGERS = [
    "httpcore",
    "httpx",
    "pymongo",
    "asyncio",
]


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Configure the root logger with a single stdout handler."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(f"Logging initialised at {logging.getLevelName(level)}")
    return root_logger
