"""
Logger configuration.

Installs one stdout handler with ISO timestamps on the root logger.

Dependencies: logging (stdlib)
System role: Centralized logging configuration
"""

import logging
import sys


def configure_logging(level: str | int = logging.INFO) -> None:
    """
    Configure Python logging with ISO timestamp and structured format.

    Args:
        level: Root log level name or number
    """
    # Remove any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger.setLevel(level.upper() if isinstance(level, str) else level)
    root_logger.addHandler(handler)

    # Reduce noise from verbose third-party libraries
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
