"""Quoting and output parsing for commands run through ``adb shell``.

All knowledge about the text format of device-side tools (ls, find,
ifconfig, ip) lives here so callers only deal with typed values.
"""

import re
import shlex
from dataclasses import dataclass
from typing import List, Optional

IPV4_PATTERN = re.compile(r"^[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}$")

# Shell snippets for IP discovery, most compatible first.
IP_COMMANDS = [
    "ifconfig wlan0 2>/dev/null | grep 'inet addr' | awk '{print $2}' | cut -d: -f2",
    "ip -4 addr show wlan0 2>/dev/null | grep 'inet ' | awk '{print $2}' | cut -d/ -f1",
    "getprop dhcp.wlan0.ipaddress",
    "netcfg 2>/dev/null | grep wlan0 | awk '{print $3}' | cut -d'/' -f1",
    "ifconfig 2>/dev/null | grep 'inet addr' | head -1 | awk '{print $2}' | cut -d: -f2",
]


@dataclass
class RemoteEntry:
    """One line of a long directory listing."""

    name: str
    permissions: str
    size: str = ""
    date: str = ""

    @property
    def is_directory(self) -> bool:
        return self.permissions.startswith("d")

    @property
    def is_link(self) -> bool:
        return self.permissions.startswith("l")


def quote(path: str) -> str:
    """Quote a path for the device shell."""
    return shlex.quote(path)


def split_lines(output: str) -> List[str]:
    """Split tool output into non-empty lines without trailing carriage returns."""
    lines = []
    for line in output.split("\n"):
        line = line.rstrip("\r").rstrip()
        if line:
            lines.append(line)
    return lines


def parse_ls_output(output: str) -> List[RemoteEntry]:
    """Parse ``ls -la`` output, dropping the total line and ``.``/``..``."""
    entries = []

    for line in split_lines(output):
        if line.startswith("total"):
            continue

        # Android toybox: perms links user group size date time name
        parts = line.split(None, 7)
        if len(parts) < 8:
            continue

        name = parts[7]
        if parts[0].startswith("l") and " -> " in name:
            name = name.split(" -> ", 1)[0]
        if name in (".", ".."):
            continue

        entries.append(RemoteEntry(
            name=name,
            permissions=parts[0],
            size=parts[4],
            date=f"{parts[5]} {parts[6]}",
        ))

    return entries


def parse_ipv4(output: str) -> Optional[str]:
    """Return the first line of ``output`` that is a dotted-quad IPv4 address."""
    for line in split_lines(output):
        candidate = line.strip()
        if IPV4_PATTERN.match(candidate):
            return candidate
    return None


def parse_count(output: str) -> int:
    """Parse the output of ``wc -l``."""
    lines = split_lines(output)
    if not lines:
        return 0
    try:
        return int(lines[-1].strip())
    except ValueError:
        return 0
