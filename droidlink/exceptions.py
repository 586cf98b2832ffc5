"""Exception hierarchy for droidlink.

Every error carries a human readable ``hint`` with the most likely
remediation, so the CLI never has to surface a bare exit code.
"""

from typing import List, Optional, Sequence


class DroidLinkError(Exception):
    """Base class for droidlink errors."""

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


class NoDeviceError(DroidLinkError):
    """No adb device in the 'device' state."""

    def __init__(self) -> None:
        super().__init__(
            "No adb device found.",
            hint="Plug in the phone, enable USB debugging, and accept the prompt.",
        )


class UnreachableError(DroidLinkError):
    """None of the candidate remote paths is an existing directory."""

    def __init__(self, candidates: Sequence[str], hint: Optional[str] = None) -> None:
        self.candidates = list(candidates)
        tried = "\n".join(f"  {c}" for c in self.candidates) or "  (none)"
        super().__init__(
            f"No candidate path is reachable. Tried:\n{tried}",
            hint=hint or "Check which storage layout the device uses with 'droidlink paths'.",
        )


class RemoteNotFoundError(DroidLinkError):
    """A specific remote directory does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"No directory of that name found on Android device: {path}",
            hint="List the parent directory with 'droidlink files list'.",
        )


class TransferError(DroidLinkError):
    """A pull, push or move could not be completed."""


class MountError(DroidLinkError):
    """Mount precondition or usage problem."""


class AlreadyMountedError(MountError):
    """The mount point is already an active mount."""

    def __init__(self, mount_point: str) -> None:
        self.mount_point = mount_point
        super().__init__(
            f"{mount_point} is already mounted",
            hint="Run: droidlink sshfs unmount",
        )


class VerificationMismatchError(MountError):
    """The mount tool reported success but no mount signal confirms it."""


class AllCandidatesFailedError(MountError):
    """Every remote root was tried and none could be mounted."""

    def __init__(self, attempts: Sequence[object], hints: List[str]) -> None:
        self.attempts = list(attempts)
        self.hints = hints
        tried = "\n".join(f"  {a}" for a in attempts)
        super().__init__(
            f"Mount failed for all paths:\n{tried}",
            hint="\n".join(hints),
        )


class UnmountError(MountError):
    """Both the preferred and the forced unmount failed."""


class ExportError(DroidLinkError):
    """An archive could not be produced."""


class ArchiveToolMissingError(ExportError):
    """The archiving capability is not available on this system."""


class WorldNotFoundError(DroidLinkError):
    """A world identifier is not in the catalog."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(
            f"World not found: {identifier}",
            hint="List worlds with 'droidlink worlds list'.",
        )
