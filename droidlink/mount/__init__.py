"""sshfs mount module initialization."""

from .detection import MountProbe
from .manager import (
    CandidateAttempt,
    CleanupResult,
    CleanupStatus,
    MountManager,
    MountSession,
    MountState,
    VerificationState,
)
from .sshfs import MountCommandResult, SSHFSMounter

__all__ = [
    # detection
    "MountProbe",
    # manager
    "CandidateAttempt",
    "CleanupResult",
    "CleanupStatus",
    "MountManager",
    "MountSession",
    "MountState",
    "VerificationState",
    # sshfs
    "MountCommandResult",
    "SSHFSMounter",
]
