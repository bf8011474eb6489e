"""Logging configuration for capturepicker.

Provides the millisecond formatter and ``setup_logging``, which configures
the root logger with a file handler and a stdout handler.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(threadName)-15s] %(levelname)-5s %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_FILE = Path("capturepicker.log")


class MillisecondFormatter(logging.Formatter):
    """Formatter that appends milliseconds to timestamps, even with a custom datefmt."""

    def formatTime(self, record, datefmt=None):
        ct = self.converter(record.created)
        s = time.strftime(datefmt or DATE_FORMAT, ct)
        return f"{s}.{int(record.msecs):03d}"


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure application-wide logging.

    Log format: YYYY-MM-DD HH:MM:SS.mmm [ThreadName     ] LEVEL  filename.py:line - message

    The file handler records everything at DEBUG; stdout follows ``log_level``.
    Media list refreshes run on ``MediaList-N`` threads, which the thread
    column makes visible.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file (default: capturepicker.log in current directory)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = MillisecondFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = []

    if log_file is None:
        log_file = DEFAULT_LOG_FILE

    try:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    except (OSError, PermissionError) as e:
        # If we can't create the log file, print a warning but continue
        print(f"Warning: Could not create log file {log_file}: {e}", file=sys.stderr)
        log_file = None

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(numeric_level)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    # Clear existing handlers and configure manually for better control
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.DEBUG)

    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized at level {log_level}")
    if log_file:
        logger.info(f"Log file: {log_file.absolute()}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Capturer started")
    """
    return logging.getLogger(name)
