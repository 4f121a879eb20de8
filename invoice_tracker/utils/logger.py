"""
Logging Configuration Module.

Every module logs through a child of the ``invoice_tracker`` logger:

    from invoice_tracker.utils.logger import get_logger
    logger = get_logger(__name__)

The CLI configures that namespace once at startup with
``setup_logger_from_config()``; library callers may use
``setup_logger()`` directly or leave logging unconfigured.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from colorama import Fore, Style, just_fix_windows_console

just_fix_windows_console()

# Namespace shared by every logger in the package
ROOT_LOGGER_NAME = "invoice_tracker"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name only."""

    LEVEL_COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname)
        if not color:
            return super().format(record)

        original = record.levelname
        record.levelname = f"{color}{original:<8}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _console_handler(log_format: str, date_format: str, colorize: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    formatter_class = ColoredFormatter if colorize else logging.Formatter
    handler.setFormatter(formatter_class(log_format, datefmt=date_format))
    return handler


def _file_handler(
    log_file: str,
    log_format: str,
    date_format: str,
    max_bytes: int,
    backup_count: int
) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
    )
    handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    return handler


def setup_logger(
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,
    backup_count: int = 5,
    colorize: bool = True
) -> logging.Logger:
    """
    Configure the ``invoice_tracker`` logger.

    Calling it again replaces the previous handlers. Records do not
    propagate to the root logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Record format. Defaults to DEFAULT_FORMAT.
        date_format: Timestamp format. Defaults to DEFAULT_DATE_FORMAT.
        log_file: Rotating log file path; None disables file logging.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.
        colorize: Colour level names on the console.

    Returns:
        The configured package logger.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/invoice_tracker.log")
    """
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    package_logger.handlers.clear()
    package_logger.propagate = False

    package_logger.addHandler(_console_handler(log_format, date_format, colorize))
    if log_file:
        package_logger.addHandler(
            _file_handler(log_file, log_format, date_format, max_bytes, backup_count)
        )

    package_logger.debug(f"Logging configured (level: {logging.getLevelName(package_logger.level)})")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger inside the package namespace.

    Module names already under ``invoice_tracker`` are used as they are;
    anything else (``__main__``, ``main``) is nested beneath it.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger_from_config() -> logging.Logger:
    """Configure logging from the ``logging`` section of settings.yaml."""
    from config import get_config, get_config_int

    file_enabled = get_config("logging.file.enabled", False)

    return setup_logger(
        level=get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=get_config("logging.file.path") if file_enabled else None,
        max_bytes=get_config_int("logging.file.max_bytes", 10485760),
        backup_count=get_config_int("logging.file.backup_count", 5),
        colorize=get_config("logging.console.colorize", True)
    )
