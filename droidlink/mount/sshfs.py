"""sshfs mount and unmount commands."""

import subprocess
import sys
import typing as t
from dataclasses import dataclass
from pathlib import Path

from ..config import TransportConfig
from ..util.logging import get_logger
from ..util.paths import is_reserved_path

logger = get_logger(__name__)

PERMISSION_DENIED_MARKER = "Operation not permitted"


@dataclass
class MountCommandResult:
    """Exit status and combined output of the mount utility."""

    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def permission_denied(self) -> bool:
        return PERMISSION_DENIED_MARKER in self.output


class SSHFSMounter:
    """Runs sshfs and the platform unmount tools."""

    def __init__(
        self,
        sshfs_path: str = "sshfs",
        platform: t.Optional[str] = None,
        reserved_prefixes: t.Sequence[str] = ("/Volumes/",),
        timeout: int = 60,
    ) -> None:
        self.sshfs_path = sshfs_path
        self.platform = platform or sys.platform
        self.reserved_prefixes = tuple(reserved_prefixes)
        self.timeout = timeout

    def build_command(
        self,
        transport: TransportConfig,
        remote_root: str,
        mount_point: Path,
        sudo: bool = False,
    ) -> t.List[str]:
        options = list(transport.options)
        if sudo:
            options += transport.sudo_options

        cmd = [
            self.sshfs_path,
            "-p", str(transport.port),
            "-o", ",".join(options),
            f"{transport.user}@{transport.host}:{remote_root}",
            str(mount_point),
        ]
        if sudo:
            cmd = ["sudo"] + cmd
        return cmd

    def mount(
        self,
        transport: TransportConfig,
        remote_root: str,
        mount_point: Path,
        sudo: bool = False,
    ) -> MountCommandResult:
        cmd = self.build_command(transport, remote_root, mount_point, sudo)
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            if sudo:
                # sudo needs the terminal for its password prompt
                returncode = subprocess.call(cmd, timeout=self.timeout)
                return MountCommandResult(returncode)

            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError:
            return MountCommandResult(127, f"Required command not found: {cmd[0]}")
        except subprocess.TimeoutExpired:
            return MountCommandResult(124, f"sshfs timed out after {self.timeout}s")

        return MountCommandResult(result.returncode, (result.stdout or "") + (result.stderr or ""))

    def _unmount_commands(self, mount_point: Path, force: bool) -> t.List[t.List[str]]:
        target = str(mount_point)

        if self.platform == "darwin":
            if is_reserved_path(mount_point, self.reserved_prefixes):
                if force:
                    return [["diskutil", "unmount", "force", target]]
                return [["diskutil", "unmount", target]]
            if force:
                return [["umount", "-f", target], ["diskutil", "unmount", "force", target]]
            return [["umount", target], ["diskutil", "unmount", target]]

        if force:
            return [["fusermount", "-uz", target], ["umount", "-l", target]]
        return [["fusermount", "-u", target], ["umount", target]]

    def _run_first_success(self, commands: t.List[t.List[str]]) -> bool:
        for cmd in commands:
            try:
                result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
            except (FileNotFoundError, subprocess.TimeoutExpired) as e:
                logger.debug(f"{cmd[0]} unavailable: {e}")
                continue

            if result.returncode == 0:
                logger.debug(f"Unmounted with: {' '.join(cmd)}")
                return True
            logger.debug(f"{' '.join(cmd)} failed: {result.stderr.strip()}")
        return False

    def unmount(self, mount_point: Path) -> bool:
        """Platform-preferred unmount."""
        return self._run_first_success(self._unmount_commands(mount_point, force=False))

    def force_unmount(self, mount_point: Path) -> bool:
        """Forced unmount, used when the regular one fails."""
        return self._run_first_success(self._unmount_commands(mount_point, force=True))

    def manual_unmount_hint(self, mount_point: Path) -> str:
        target = f"'{mount_point}'"
        if self.platform == "darwin":
            return (
                "Close Finder windows that have this volume open.\n"
                f"Try manually: diskutil unmount {target}\n"
                f"Or force: diskutil unmount force {target}"
            )
        return (
            "Close programs that have files open under the mount point.\n"
            f"Try manually: fusermount -u {target}\n"
            f"Or force: sudo umount -l {target}"
        )
