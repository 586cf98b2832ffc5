"""ADB module initialization."""

from .client import ADBClient, CommandResult
from .device import ADBError, ADBTimeoutError, DeviceInfo, check_adb_available, list_devices
from .shell import RemoteEntry

__all__ = [
    # client
    "ADBClient",
    "CommandResult",
    # device
    "ADBError",
    "ADBTimeoutError",
    "DeviceInfo",
    "check_adb_available",
    "list_devices",
    # shell
    "RemoteEntry",
]
