"""Utility functions for time operations."""

from datetime import datetime
from typing import Optional

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d__%I-%M-%S-%p"


def timestamp_now(fmt: str = BACKUP_TIMESTAMP_FORMAT, now: Optional[datetime] = None) -> str:
    """Timestamp used for backup folder names, e.g. 2024-05-01__03-12-45-PM."""
    return (now or datetime.now()).strftime(fmt)


def format_duration(seconds: float) -> str:
    """Format duration in human readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"
