"""Utility functions for local and remote path handling."""

import posixpath
from pathlib import Path
from typing import Iterable

from .logging import get_logger

logger = get_logger(__name__)

HIDDEN_MARKER = "."


def ensure_directory(path: Path) -> Path:
    """Ensure directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def relative_remote_path(path: str, root: str) -> str:
    """Path of ``path`` relative to the remote ``root``.

    Files outside ``root`` (or ``root`` itself) map to their basename.
    """
    root = root.rstrip("/")
    prefix = root + "/"
    if path.startswith(prefix):
        return path[len(prefix):]
    return posixpath.basename(path)


def is_hidden_path(relative_path: str) -> bool:
    """True when any segment of ``relative_path`` starts with the hidden marker."""
    return any(
        segment.startswith(HIDDEN_MARKER)
        for segment in relative_path.split("/")
        if segment
    )


def is_reserved_path(path: Path, reserved_prefixes: Iterable[str]) -> bool:
    """Whether ``path`` lives in a system-managed location (e.g. macOS /Volumes)."""
    text = str(path)
    for prefix in reserved_prefixes:
        if text == prefix.rstrip("/") or text.startswith(prefix):
            return True
    return False


def remove_empty_directory(path: Path) -> bool:
    """Remove ``path`` if it is an empty directory. Returns True when removed."""
    try:
        path.rmdir()
        return True
    except OSError as e:
        logger.debug(f"Not removing {path}: {e}")
        return False


def format_size(size_bytes: int) -> str:
    """Format file size in human readable format."""
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    size = float(size_bytes)
    while size >= 1024.0 and i < len(size_names) - 1:
        size /= 1024.0
        i += 1

    return f"{size:.1f} {size_names[i]}"
