"""ADB client wrapper for device communication."""

import subprocess
import typing as t
from dataclasses import dataclass
from pathlib import Path

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .device import ADBError, ADBTimeoutError, list_devices
from .shell import IP_COMMANDS, RemoteEntry, parse_count, parse_ipv4, parse_ls_output, quote, split_lines
from ..util.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of an adb invocation."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def lines(self) -> t.List[str]:
        return split_lines(self.stdout)


class ADBClient:
    """Synchronous adb client with typed results.

    Every remote path is shell-quoted here; callers pass plain strings.
    Empty output is treated as "no result", only a non-zero exit is an error.
    """

    def __init__(
        self,
        adb_path: str = "adb",
        serial: t.Optional[str] = None,
        timeout: int = 30,
        transfer_timeout: int = 1800,
    ) -> None:
        """Initialize ADB client.

        Args:
            adb_path: Path to adb executable
            serial: Device serial, needed when several devices are attached
            timeout: Timeout for shell queries in seconds
            transfer_timeout: Timeout for pull/push in seconds
        """
        self.adb_path = adb_path
        self.serial = serial
        self.timeout = timeout
        self.transfer_timeout = transfer_timeout

    def _base_command(self) -> t.List[str]:
        cmd = [self.adb_path]
        if self.serial:
            cmd += ["-s", self.serial]
        return cmd

    @retry(
        retry=retry_if_exception_type(ADBTimeoutError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    def _run_command(self, args: t.List[str], timeout: t.Optional[int] = None) -> CommandResult:
        """Run an adb command and return its result without judging the exit code.

        Raises:
            ADBError: If adb is missing
            ADBTimeoutError: If the command timed out (retried)
        """
        cmd = self._base_command() + args
        logger.debug(f"Running ADB command: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout or self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ADBTimeoutError(f"ADB command timed out: {' '.join(cmd)}") from e
        except FileNotFoundError as e:
            raise ADBError(
                "ADB not found.",
                hint="Install Android platform tools (macOS: brew install android-platform-tools).",
            ) from e

        return CommandResult(result.returncode, result.stdout or "", result.stderr or "")

    def shell(self, command: str, timeout: t.Optional[int] = None) -> str:
        """Execute shell command on device.

        Returns:
            Command output with carriage returns removed

        Raises:
            ADBError: If the command exits non-zero
        """
        result = self._run_command(["shell", command], timeout=timeout)
        if not result.ok:
            raise ADBError(f"ADB shell command failed: {command}\nError: {result.stderr.strip()}")
        return "\n".join(result.lines)

    def device_count(self) -> int:
        """Number of attached devices in the 'device' state."""
        return len(list_devices(self.adb_path))

    def path_exists(self, path: str) -> bool:
        """Check if a file or directory exists on the device."""
        result = self._run_command(["shell", f"test -e {quote(path)} && echo exists"])
        return "exists" in result.lines

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        result = self._run_command(["shell", f"test -d {quote(path)} && echo directory"])
        return "directory" in result.lines

    def list_entries(self, path: str, directories_only: bool = False) -> t.List[str]:
        """Names directly under ``path`` in the order the device reports them."""
        root = path.rstrip("/") or "/"
        if directories_only:
            command = f"find {quote(root + '/')} -mindepth 1 -maxdepth 1 -type d 2>/dev/null"
        else:
            command = f"ls -1 {quote(root + '/')} 2>/dev/null"

        result = self._run_command(["shell", command])
        names = []
        for line in result.lines:
            name = line.rstrip("/").rsplit("/", 1)[-1] if directories_only else line
            if name:
                names.append(name)
        return names

    def list_long(self, path: str) -> t.List[RemoteEntry]:
        """Parsed ``ls -la`` of a directory (trailing slash follows symlinked roots)."""
        if not path.endswith("/"):
            path = path + "/"
        result = self._run_command(["shell", f"ls -la {quote(path)} 2>/dev/null"])
        if not result.ok and not result.lines:
            raise ADBError(f"Cannot list directory: {path}")
        return parse_ls_output(result.stdout)

    def count_entries(self, path: str) -> int:
        """Number of entries in a directory (0 when unreadable)."""
        result = self._run_command(["shell", f"ls -1 {quote(path)} 2>/dev/null | wc -l"])
        return parse_count(result.stdout)

    def read_small_file(self, path: str) -> t.Optional[str]:
        """Contents of a small text file, or None when it cannot be read."""
        result = self._run_command(["shell", f"cat {quote(path)} 2>/dev/null"])
        text = result.stdout.replace("\r", "")
        if not result.ok or not text.strip():
            logger.debug(f"Could not read {path}")
            return None
        return text

    def find_files(self, path: str) -> t.List[str]:
        """All regular files below ``path``, recursively."""
        result = self._run_command(
            ["shell", f"find {quote(path)} -type f 2>/dev/null"],
            timeout=max(self.timeout, 60),
        )
        return result.lines

    def pull(self, remote_path: str, local_path: Path) -> bool:
        """Pull a file or directory from the device.

        Returns:
            True when adb reported success
        """
        local_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            result = self._run_command(["pull", remote_path, str(local_path)], timeout=self.transfer_timeout)
        except ADBError as e:
            logger.error(f"Failed to pull {remote_path}: {e}")
            return False

        if not result.ok:
            logger.warning(f"Failed to pull {remote_path}: {result.stderr.strip()}")
            return False
        return True

    def push(self, local_path: Path, remote_path: str) -> bool:
        """Push a local file or directory to the device."""
        try:
            result = self._run_command(["push", str(local_path), remote_path], timeout=self.transfer_timeout)
        except ADBError as e:
            logger.error(f"Failed to push {local_path}: {e}")
            return False

        if not result.ok:
            logger.warning(f"Failed to push {local_path}: {result.stderr.strip()}")
            return False
        return True

    def delete_file(self, path: str) -> bool:
        """Delete a single regular file on the device."""
        result = self._run_command(["shell", f"rm -f -- {quote(path)}"])
        if not result.ok:
            logger.warning(f"Failed to delete {path}: {result.stderr.strip()}")
        return result.ok

    def remove_empty_dirs(self, path: str) -> bool:
        """Remove empty directories below ``path`` (``path`` itself is kept)."""
        result = self._run_command(
            ["shell", f"find {quote(path)} -mindepth 1 -depth -type d -empty -delete 2>/dev/null"]
        )
        return result.ok

    def get_ip_address(self) -> t.Optional[str]:
        """Detect the device Wi-Fi IPv4 address, trying several tools."""
        for command in IP_COMMANDS:
            try:
                result = self._run_command(["shell", command])
            except ADBError as e:
                logger.debug(f"IP lookup '{command}' failed: {e}")
                continue

            address = parse_ipv4(result.stdout)
            if address:
                logger.debug(f"Detected device IP {address} via '{command}'")
                return address

        return None

    def open_shell(self) -> int:
        """Open an interactive adb shell attached to this terminal."""
        return subprocess.call(self._base_command() + ["shell"])
