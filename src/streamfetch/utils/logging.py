"""Logging utilities."""

import logging
import sys
import traceback
from pathlib import Path

from .config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str | int | None = None):
    """Send log records to stdout in the application format.

    Without an explicit level the configured ``log_level`` is used.
    """
    if level is None:
        level = Config().log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def error_log_path() -> Path:
    return Path.home() / "streamfetch_error.log"


def log_error(msg: str, exc: Exception | None = None, log_file: Path | None = None):
    """Log errors to a file for debugging."""
    log_file = log_file or error_log_path()
    try:
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(f"{msg}\n")
            if exc:
                f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
            f.write("-" * 50 + "\n")
    except OSError:
        pass  # Can't log if logging fails
