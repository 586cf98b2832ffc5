"""Mount state detection.

FUSE mounts do not always show up in both the kernel mount table and a
``mountpoint`` probe, so "mounted" is the OR of the two signals. After a
mount attempt a third signal, the directory being listable, is accepted too.
"""

import os
import subprocess
import typing as t
from pathlib import Path

from ..util.logging import get_logger

logger = get_logger(__name__)


class MountProbe:
    """Answers whether a local path is an active mount."""

    def __init__(self, mount_cmd: str = "mount", mountpoint_cmd: str = "mountpoint") -> None:
        self.mount_cmd = mount_cmd
        self.mountpoint_cmd = mountpoint_cmd

    def in_mount_table(self, mount_point: Path) -> bool:
        """Scan ``mount`` output for `` on <mount_point> ``."""
        try:
            result = subprocess.run([self.mount_cmd], capture_output=True, text=True, timeout=10)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug(f"mount table scan unavailable: {e}")
            return False

        needle = f" on {mount_point} "
        return any(needle in line for line in result.stdout.splitlines())

    def is_mountpoint(self, mount_point: Path) -> bool:
        """Probe with ``mountpoint -q``, or ``os.path.ismount`` where the tool is missing."""
        try:
            result = subprocess.run(
                [self.mountpoint_cmd, "-q", str(mount_point)],
                capture_output=True,
                timeout=10,
            )
            return result.returncode == 0
        except FileNotFoundError:
            return os.path.ismount(mount_point)
        except subprocess.TimeoutExpired:
            logger.debug(f"mountpoint probe timed out for {mount_point}")
            return False

    def is_listable(self, mount_point: Path) -> bool:
        """Whether the directory can be listed without error."""
        try:
            os.listdir(mount_point)
            return True
        except OSError:
            return False

    def is_mounted(self, mount_point: Path) -> bool:
        """Mount-table scan OR mount-point probe."""
        return self.in_mount_table(mount_point) or self.is_mountpoint(mount_point)

    def verify(self, mount_point: Path) -> t.Optional[str]:
        """Post-mount verification. Returns the name of the first passing signal."""
        if self.in_mount_table(mount_point):
            return "mount-table"
        if self.is_mountpoint(mount_point):
            return "mountpoint"
        if mount_point.is_dir() and self.is_listable(mount_point):
            return "listable"
        return None
