"""
Logging for the CSF dashboard client.

Every module logs through a child of the "csf" logger (see get_logger), so a
single setup_logging() call decides where the whole client's messages go:
stderr always, plus an optional log file for long exports or watch sessions.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "csf"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Route the client's log records to stderr and, optionally, a file.

    stderr keeps stdout free for CSV exports. Calling this again replaces the
    handlers installed by the previous call.

    Args:
        level: Logging level (default: INFO)
        log_file: Append records to this file as well; parent directories
            are created

    Returns:
        The "csf" logger
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, as a child of the "csf" logger.

    Usage:
        logger = get_logger(__name__)
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
