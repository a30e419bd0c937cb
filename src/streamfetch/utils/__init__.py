"""Utility functions and classes for StreamFetch."""

from .config import Config
from .filenames import extension_for_mime, sanitize_filename, suggested_filename
from .logging import log_error, setup_logging

__all__ = [
    "Config",
    "extension_for_mime",
    "sanitize_filename",
    "suggested_filename",
    "log_error",
    "setup_logging",
]
