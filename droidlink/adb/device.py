"""ADB device discovery."""

import subprocess
from dataclasses import dataclass
from typing import List

from ..exceptions import DroidLinkError
from ..util.logging import get_logger

logger = get_logger(__name__)


class ADBError(DroidLinkError):
    """ADB command execution error."""
    pass


class ADBTimeoutError(ADBError):
    """ADB command did not finish in time."""
    pass


@dataclass
class DeviceInfo:
    """A device line from ``adb devices``."""

    serial: str
    state: str = "device"

    @property
    def is_ready(self) -> bool:
        """Whether the device accepted the debugging prompt."""
        return self.state == "device"


def parse_devices_output(output: str) -> List[DeviceInfo]:
    """Parse ``adb devices`` output, skipping the header and daemon chatter."""
    devices = []

    for line in output.replace("\r", "").split("\n"):
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue

        parts = line.split()
        if len(parts) >= 2:
            devices.append(DeviceInfo(serial=parts[0], state=parts[1]))

    return devices


def check_adb_available(adb_path: str = "adb") -> bool:
    """Check if ADB is available and working."""
    try:
        result = subprocess.run(
            [adb_path, "version"],
            capture_output=True,
            text=True,
            timeout=10
        )
        return result.returncode == 0
    except (subprocess.TimeoutExpired, FileNotFoundError):
        return False


def list_devices(adb_path: str = "adb", include_unauthorized: bool = False) -> List[DeviceInfo]:
    """List connected ADB devices (only ready ones unless asked otherwise)."""
    try:
        result = subprocess.run(
            [adb_path, "devices"],
            capture_output=True,
            text=True,
            timeout=10,
            check=True
        )
    except FileNotFoundError as e:
        raise ADBError(
            "ADB not found.",
            hint="Install Android platform tools (macOS: brew install android-platform-tools).",
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ADBTimeoutError("Listing devices timed out", hint="Restart the adb server: adb kill-server") from e
    except subprocess.CalledProcessError as e:
        raise ADBError(f"Failed to list devices: {e.stderr}") from e

    devices = parse_devices_output(result.stdout)
    if not include_unauthorized:
        devices = [d for d in devices if d.is_ready]

    logger.debug(f"adb devices: {[d.serial for d in devices]}")
    return devices
