"""Utility module initialization."""

from .logging import get_logger, setup_logging
from .paths import (
    ensure_directory,
    format_size,
    is_hidden_path,
    is_reserved_path,
    relative_remote_path,
    remove_empty_directory,
)
from .timeutil import format_duration, timestamp_now

__all__ = [
    # logging
    "get_logger",
    "setup_logging",
    # paths
    "ensure_directory",
    "format_size",
    "is_hidden_path",
    "is_reserved_path",
    "relative_remote_path",
    "remove_empty_directory",
    # timeutil
    "format_duration",
    "timestamp_now",
]
