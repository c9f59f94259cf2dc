"""Logging setup for the CLI and server."""

import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "rwmapper"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the rwmapper namespace.

    Args:
        name: Module name (usually __name__); None returns the root rwmapper logger
    """
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def setup_logging(
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure the rwmapper logger.

    Safe to call more than once; existing handlers are replaced.

    Args:
        level: Log level for all handlers
        console: Log to stderr
        log_file: Also log to this file (parent directory is created)

    Returns:
        The configured rwmapper logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
