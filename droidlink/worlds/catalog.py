"""Catalog of Minecraft Bedrock worlds stored on the device."""

import re
import typing as t
from dataclasses import dataclass
from enum import Enum

from ..adb.client import ADBClient
from ..exceptions import WorldNotFoundError
from ..util.logging import get_logger

logger = get_logger(__name__)

UNSAFE_IDENTIFIER_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@dataclass(frozen=True)
class WorldEntry:
    """One world directory on the device."""

    identifier: str
    display_name: str
    remote_path: str


class ExportMode(str, Enum):
    SINGLE = "single"
    ALL = "all"


def clean_identifier(name: str) -> str:
    """Strip characters that would break paths or shell quoting from a folder name."""
    return UNSAFE_IDENTIFIER_CHARS.sub("", name.strip())


class WorldCatalog:
    """Lists worlds fresh from the device. Never modifies the device."""

    def __init__(self, bridge: ADBClient, name_file: str = "levelname.txt") -> None:
        self.bridge = bridge
        self.name_file = name_file

    def read_display_name(self, remote_path: str, fallback: str) -> str:
        """First line of the world's name file, or ``fallback``."""
        text = self.bridge.read_small_file(f"{remote_path}/{self.name_file}")
        if not text:
            return fallback

        first_line = text.replace("\r", "").split("\n", 1)[0].strip()
        return first_line or fallback

    def list_entries(self, root: str) -> t.List[WorldEntry]:
        """World entries directly under ``root``, in device order."""
        root = root.rstrip("/")
        entries = []

        for name in self.bridge.list_entries(root, directories_only=True):
            identifier = clean_identifier(name)
            if not identifier:
                logger.debug(f"Skipping world folder with unusable name: {name!r}")
                continue

            remote_path = f"{root}/{identifier}"
            display_name = self.read_display_name(remote_path, identifier)
            entries.append(WorldEntry(identifier, display_name, remote_path))

        logger.info(f"Found {len(entries)} world(s) in {root}")
        return entries

    def select_for_export(
        self,
        entries: t.Sequence[WorldEntry],
        mode: ExportMode,
        identifier: t.Optional[str] = None,
    ) -> t.List[WorldEntry]:
        """Explicit list of entries to export."""
        if mode == ExportMode.ALL:
            return list(entries)

        for entry in entries:
            if entry.identifier == identifier:
                return [entry]

        raise WorldNotFoundError(identifier or "")
