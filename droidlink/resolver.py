"""Resolution of candidate remote roots."""

import typing as t
from dataclasses import dataclass, field
from enum import Enum

from .adb.client import ADBClient
from .exceptions import UnreachableError
from .util.logging import get_logger

logger = get_logger(__name__)


class PathStatus(str, Enum):
    """What a probe found at a candidate path."""

    MISSING = "missing"
    FILE = "file"
    EMPTY = "empty"
    ACCESSIBLE = "accessible"


@dataclass
class PathProbe:
    """Probe result for one candidate path."""

    path: str
    exists: bool
    status: PathStatus
    sample: t.List[str] = field(default_factory=list)


class PathResolver:
    """Picks the first candidate path that exists and is a directory."""

    def __init__(self, bridge: ADBClient) -> None:
        self.bridge = bridge

    def is_reachable(self, path: str) -> bool:
        return self.bridge.path_exists(path) and self.bridge.is_directory(path)

    def resolve(self, candidates: t.Sequence[str], hint: t.Optional[str] = None) -> str:
        """Return the first reachable candidate, in list order.

        Raises:
            UnreachableError: If no candidate is an existing directory
        """
        candidates = tuple(candidates)
        for candidate in candidates:
            logger.debug(f"Checking candidate {candidate}")
            if self.is_reachable(candidate):
                logger.info(f"Using remote path {candidate}")
                return candidate

        raise UnreachableError(candidates, hint=hint)

    def probe(self, candidates: t.Sequence[str], sample_size: int = 3) -> t.List[PathProbe]:
        """Inspect every candidate without stopping at the first hit."""
        probes = []

        for candidate in candidates:
            if not self.bridge.path_exists(candidate):
                probes.append(PathProbe(candidate, exists=False, status=PathStatus.MISSING))
                continue

            if not self.bridge.is_directory(candidate):
                probes.append(PathProbe(candidate, exists=True, status=PathStatus.FILE))
                continue

            sample = self.bridge.list_entries(candidate)[:sample_size]
            status = PathStatus.ACCESSIBLE if sample else PathStatus.EMPTY
            probes.append(PathProbe(candidate, exists=True, status=status, sample=sample))

        return probes
