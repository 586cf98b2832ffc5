"""Check which device directories each access channel can reach.

adb runs with elevated permissions and can read Android/data; an SSH
server on the device runs as an app user and is subject to scoped storage.
"""

import subprocess
import typing as t
from dataclasses import dataclass, field

from .adb.client import ADBClient
from .adb.shell import parse_count, quote
from .config import TransportConfig
from .exceptions import DroidLinkError
from .util.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AccessResult:
    path: str
    exists: bool
    item_count: int = 0


@dataclass
class AccessReport:
    channel: str
    results: t.List[AccessResult] = field(default_factory=list)
    warnings: t.List[str] = field(default_factory=list)


class AccessChecker:
    """Probes a list of paths over adb or ssh."""

    def __init__(self, bridge: t.Optional[ADBClient] = None, ssh_path: str = "ssh") -> None:
        self.bridge = bridge
        self.ssh_path = ssh_path

    def check_adb(self, paths: t.Sequence[str]) -> AccessReport:
        if self.bridge is None:
            raise DroidLinkError("No adb client configured")

        report = AccessReport(channel="adb")
        for path in paths:
            if self.bridge.is_directory(path):
                report.results.append(AccessResult(path, True, self.bridge.count_entries(path)))
            else:
                report.results.append(AccessResult(path, False))
        return report

    def _ssh_command(self, transport: TransportConfig, batch: bool, remote_cmd: str) -> t.List[str]:
        cmd = [
            self.ssh_path,
            "-p", str(transport.port),
            "-o", "ConnectTimeout=5",
            "-o", "StrictHostKeyChecking=no",
        ]
        if batch:
            cmd += ["-o", "BatchMode=yes"]
        return cmd + [f"{transport.user}@{transport.host}", remote_cmd]

    def _ssh(self, transport: TransportConfig, batch: bool, remote_cmd: str) -> str:
        cmd = self._ssh_command(transport, batch, remote_cmd)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=60)
        except FileNotFoundError as e:
            raise DroidLinkError(f"Required command not found: {self.ssh_path}") from e
        except subprocess.TimeoutExpired:
            logger.debug(f"ssh timed out: {remote_cmd}")
            return ""
        return result.stdout if result.returncode == 0 else ""

    def check_ssh(self, paths: t.Sequence[str], transport: TransportConfig) -> AccessReport:
        if not transport.user or not transport.host:
            raise DroidLinkError(
                "SSH user and device IP must be set for the sshfs check",
                hint="Pass --ssh-user and --android-ip (e.g. u0_a499 and 192.168.86.100).",
            )

        report = AccessReport(channel="ssh")
        batch = "SSH_OK" in self._ssh(transport, True, "echo SSH_OK")
        if not batch:
            report.warnings.append(
                "SSH key authentication failed; falling back to password authentication. "
                "Install SSH keys for passwordless access."
            )

        for path in paths:
            output = self._ssh(transport, batch, f"test -d {quote(path)} && echo EXISTS")
            if "EXISTS" in output:
                count = parse_count(self._ssh(transport, batch, f"ls -1 {quote(path)} 2>/dev/null | wc -l"))
                report.results.append(AccessResult(path, True, count))
            else:
                report.results.append(AccessResult(path, False))

        return report
