"""sshfs mount lifecycle.

The manager walks a small state machine per mount call::

    idle -> probing -> mounting -> verifying -> mounted -> unmounting -> idle
                         |            |
                         +------------+--> rolling_back -> probing (next candidate)

and ends in ``all_failed`` when no candidate root could be mounted. The
"already mounted" precondition is the only mutual exclusion between
invocations; there is no lock file.
"""

import os
import time
import typing as t
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ..config import MountConfig, TransportConfig
from ..exceptions import (
    AllCandidatesFailedError,
    AlreadyMountedError,
    MountError,
    UnmountError,
    VerificationMismatchError,
)
from ..util.logging import get_logger
from ..util.paths import is_reserved_path, remove_empty_directory
from .detection import MountProbe
from .sshfs import SSHFSMounter

logger = get_logger(__name__)

PERMISSION_HINTS = [
    "Permission denied by the FUSE layer (macFUSE needs Full Disk Access):",
    "  - Add your terminal to System Settings > Privacy & Security > Full Disk Access",
    "  - Restart the terminal after granting access, or retry with --use-sudo",
]

TRANSPORT_HINTS = [
    "Transport or credential mismatch:",
    "  - SSH server not running on Android (run 'sshd' in Termux)",
    "  - Wrong username (check with 'whoami' in Termux)",
    "  - Wrong port (Termux: 8022, SSHelper: 2222)",
    "  - Device not on the same Wi-Fi network",
]


class MountState(str, Enum):
    IDLE = "idle"
    PROBING = "probing"
    MOUNTING = "mounting"
    VERIFYING = "verifying"
    MOUNTED = "mounted"
    ROLLING_BACK = "rolling_back"
    UNMOUNTING = "unmounting"
    ALL_FAILED = "all_failed"


class VerificationState(str, Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    FAILED = "failed"


class CleanupStatus(str, Enum):
    ABSENT = "absent"
    REMOVED = "removed"
    NOT_EMPTY = "not_empty"
    KEPT_RESERVED = "kept_reserved"


@dataclass
class MountSession:
    """An established, verified mount."""

    remote_root: str
    mount_point: Path
    transport: TransportConfig
    sudo_mode: bool = False
    verification: VerificationState = VerificationState.UNVERIFIED
    verified_by: t.Optional[str] = None


@dataclass
class CandidateAttempt:
    """Outcome of trying one remote root."""

    remote_root: str
    succeeded: bool
    reason: str
    permission_denied: bool = False

    def __str__(self) -> str:
        return f"{self.remote_root}: {self.reason}"


@dataclass
class CleanupResult:
    mount_point: Path
    status: CleanupStatus
    unmounted: bool = False
    contents: t.List[str] = field(default_factory=list)


class MountManager:
    """Establishes, verifies and tears down sshfs mounts."""

    def __init__(
        self,
        config: MountConfig,
        mounter: t.Optional[SSHFSMounter] = None,
        probe: t.Optional[MountProbe] = None,
        sleep: t.Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.mounter = mounter or SSHFSMounter(
            sshfs_path=config.sshfs_path,
            reserved_prefixes=config.reserved_prefixes,
        )
        self.probe = probe or MountProbe()
        self._sleep = sleep
        self.state = MountState.IDLE
        self.history: t.List[MountState] = [MountState.IDLE]
        self.session: t.Optional[MountSession] = None

    def _transition(self, state: MountState) -> None:
        logger.debug(f"mount state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _mount_point(self, mount_point: t.Optional[Path]) -> Path:
        return Path(os.path.abspath(Path(mount_point or self.config.mount_point).expanduser()))

    def _is_reserved(self, mount_point: Path) -> bool:
        return is_reserved_path(mount_point, self.config.reserved_prefixes)

    def is_mounted(self, mount_point: t.Optional[Path] = None) -> bool:
        return self.probe.is_mounted(self._mount_point(mount_point))

    def mount(
        self,
        candidates: t.Optional[t.Sequence[str]] = None,
        mount_point: t.Optional[Path] = None,
        transport: t.Optional[TransportConfig] = None,
    ) -> MountSession:
        """Mount the first candidate root that mounts and verifies.

        Raises:
            AlreadyMountedError: If the mount point is already active
            MountError: If transport parameters are incomplete
            AllCandidatesFailedError: If every candidate failed
        """
        mp = self._mount_point(mount_point)
        roots = tuple(candidates or self.config.remote_candidates)
        transport = transport or self.config.transport

        if self.probe.is_mounted(mp):
            raise AlreadyMountedError(str(mp))
        if not transport.host:
            raise MountError(
                "No device IP address given",
                hint="Pass --android-ip or detect it with 'droidlink device ip'.",
            )
        if not transport.user:
            raise MountError(
                "No SSH username given",
                hint="Pass --ssh-user (e.g. u0_a123 for Termux, sshelper for SSHelper).",
            )
        if not roots:
            raise MountError("No remote paths to mount")

        if self.state == MountState.ALL_FAILED:
            self._transition(MountState.IDLE)

        created = self._prepare_mount_point(mp)

        logger.info(f"Mounting {transport.user}@{transport.host}:{transport.port} at {mp}")
        attempts = []
        for root in roots:
            self._transition(MountState.PROBING)
            attempt, session = self._try_candidate(root, mp, transport)
            attempts.append(attempt)

            if session is not None:
                self.session = session
                logger.info(f"Mounted {root} at {mp} (verified via {session.verified_by})")
                return session

            logger.warning(f"Mount of {root} failed: {attempt.reason}")

        self._transition(MountState.ALL_FAILED)
        if created:
            remove_empty_directory(mp)
        raise AllCandidatesFailedError(attempts, self._failure_hints(attempts, transport))

    def _prepare_mount_point(self, mount_point: Path) -> bool:
        """Create the mount point directory. Returns True if it was created here."""
        if self._is_reserved(mount_point):
            return False
        if mount_point.exists():
            if not mount_point.is_dir():
                raise MountError(f"{mount_point} exists but is not a directory")
            return False

        try:
            mount_point.mkdir(parents=True)
        except OSError as e:
            raise MountError(f"Cannot create mount point {mount_point}: {e}") from e
        return True

    def _try_candidate(
        self,
        root: str,
        mount_point: Path,
        transport: TransportConfig,
    ) -> t.Tuple[CandidateAttempt, t.Optional[MountSession]]:
        self._transition(MountState.MOUNTING)
        result = self.mounter.mount(transport, root, mount_point, sudo=self.config.sudo_mode)

        if not result.ok:
            self._rollback(mount_point)
            reason = f"sshfs exited with code {result.returncode}"
            if result.output.strip():
                reason += f" ({result.output.strip().splitlines()[-1]})"
            return CandidateAttempt(root, False, reason, result.permission_denied), None

        self._transition(MountState.VERIFYING)
        session = MountSession(
            remote_root=root,
            mount_point=mount_point,
            transport=transport,
            sudo_mode=self.config.sudo_mode,
        )
        try:
            session.verified_by = self._verify(root, mount_point)
        except VerificationMismatchError as e:
            session.verification = VerificationState.FAILED
            self._rollback(mount_point)
            return CandidateAttempt(root, False, str(e)), None

        session.verification = VerificationState.VERIFIED
        self._transition(MountState.MOUNTED)
        return CandidateAttempt(root, True, f"verified via {session.verified_by}"), session

    def _verify(self, root: str, mount_point: Path) -> str:
        self._sleep(self.config.settle_delay)
        signal = self.probe.verify(mount_point)
        if signal is None:
            raise VerificationMismatchError(
                f"sshfs reported success for {root} but the mount is not visible at {mount_point}"
            )
        return signal

    def _rollback(self, mount_point: Path) -> None:
        """Best-effort teardown of a partial mount."""
        self._transition(MountState.ROLLING_BACK)
        if not self.mounter.unmount(mount_point):
            logger.debug(f"Nothing to roll back at {mount_point}")

    def _failure_hints(self, attempts: t.List[CandidateAttempt], transport: TransportConfig) -> t.List[str]:
        hints = PERMISSION_HINTS + TRANSPORT_HINTS
        if any(a.permission_denied for a in attempts):
            hints = ["At least one attempt was refused with 'Operation not permitted'."] + hints
        hints.append(f"Test SSH connection: ssh -p {transport.port} {transport.user}@{transport.host}")
        return hints

    def unmount(self, mount_point: t.Optional[Path] = None) -> bool:
        """Unmount ``mount_point``.

        Returns:
            True if something was unmounted, False if it was not mounted

        Raises:
            UnmountError: If both the preferred and the forced unmount failed
        """
        mp = self._mount_point(mount_point)

        if not self.probe.is_mounted(mp):
            logger.info(f"{mp} is not mounted")
            return False

        self._transition(MountState.UNMOUNTING)
        logger.info(f"Unmounting {mp}...")

        if not (self.mounter.unmount(mp) or self.mounter.force_unmount(mp)):
            self._transition(MountState.MOUNTED)
            raise UnmountError(f"Failed to unmount {mp}", hint=self.mounter.manual_unmount_hint(mp))

        if not self._is_reserved(mp):
            remove_empty_directory(mp)

        self.session = None
        self._transition(MountState.IDLE)
        return True

    def cleanup(self, mount_point: Path) -> CleanupResult:
        """Clean up a stale or leftover mount point."""
        mp = self._mount_point(mount_point)
        result = CleanupResult(mount_point=mp, status=CleanupStatus.ABSENT)

        mounted = self.probe.is_mounted(mp)
        if not mp.exists() and not mounted:
            return result

        if mounted:
            result.unmounted = self.unmount(mp)

        if not mp.exists():
            result.status = CleanupStatus.REMOVED
        elif self._is_reserved(mp):
            result.status = CleanupStatus.KEPT_RESERVED
        elif remove_empty_directory(mp):
            result.status = CleanupStatus.REMOVED
        else:
            result.status = CleanupStatus.NOT_EMPTY
            if mp.is_dir():
                result.contents = sorted(os.listdir(mp))[:5]

        return result
