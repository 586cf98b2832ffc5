"""Pull, push and transactional move over adb."""

import shutil
import typing as t
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from tqdm import tqdm

from .adb.client import ADBClient
from .adb.shell import RemoteEntry
from .exceptions import RemoteNotFoundError, TransferError
from .util.logging import get_logger
from .util.paths import ensure_directory, is_hidden_path, relative_remote_path

logger = get_logger(__name__)


class TransferMode(str, Enum):
    PULL = "pull"
    PUSH = "push"
    MOVE = "move"


class MoveOutcome(str, Enum):
    """How a move job ended. None of these is an error."""

    NOTHING_TO_MOVE = "nothing_to_move"
    DECLINED = "declined"
    COMPLETED = "completed"
    COMPLETED_WITH_WARNINGS = "completed_with_warnings"


@dataclass
class TransferJob:
    """A single copy operation and, for moves, its per-file bookkeeping."""

    source: str
    destination: str
    mode: TransferMode
    files: t.List[str] = field(default_factory=list)
    copied: t.List[str] = field(default_factory=list)
    failed: t.List[str] = field(default_factory=list)


@dataclass
class MoveResult:
    """Result of a move job."""

    job: TransferJob
    outcome: MoveOutcome
    deleted: t.List[str] = field(default_factory=list)
    delete_failed: t.List[str] = field(default_factory=list)
    warnings: t.List[str] = field(default_factory=list)


ConfirmCallback = t.Callable[[TransferJob], bool]


class TransferEngine:
    """Moves files between the device and the local filesystem."""

    def __init__(
        self,
        bridge: ADBClient,
        confirm: t.Optional[ConfirmCallback] = None,
        show_progress: bool = True,
    ) -> None:
        """Initialize the engine.

        Args:
            bridge: adb client used for every device call
            confirm: Asked before anything is deleted on the device; a move
                without a callback never deletes
            show_progress: Display a progress bar while copying
        """
        self.bridge = bridge
        self.confirm = confirm
        self.show_progress = show_progress

    def _require_directory(self, remote: str) -> None:
        if not self.bridge.is_directory(remote):
            raise RemoteNotFoundError(remote)

    def pull(self, remote: str, local: Path) -> Path:
        """Pull a file or directory from the device."""
        if remote.endswith("/"):
            self._require_directory(remote.rstrip("/") or "/")

        logger.info(f"Pulling: {remote} -> {local}")
        if not self.bridge.pull(remote, local):
            raise TransferError(
                f"Failed to pull {remote}",
                hint="Check the path with 'droidlink files list' and that USB debugging is still authorized.",
            )
        return local

    def push(self, local: Path, remote: str) -> str:
        """Push a local file or directory to the device."""
        if not local.exists():
            raise TransferError(f"Local path does not exist: {local}")

        logger.info(f"Pushing: {local} -> {remote}")
        if not self.bridge.push(local, remote):
            raise TransferError(
                f"Failed to push {local} to {remote}",
                hint="The destination may be read-only or blocked by scoped storage.",
            )
        return remote

    def list_directory(self, remote: str) -> t.List[RemoteEntry]:
        """Long listing of a remote directory."""
        self._require_directory(remote.rstrip("/") or "/")
        return self.bridge.list_long(remote)

    def enumerate_visible_files(self, remote: str) -> t.List[str]:
        """Files below ``remote`` with no hidden segment in their relative path."""
        files = []
        for path in self.bridge.find_files(remote):
            if is_hidden_path(relative_remote_path(path, remote)):
                continue
            files.append(path)
        return files

    def move(self, remote: str, local: Path) -> MoveResult:
        """Copy every visible file under ``remote`` to ``local``, then delete it on the device.

        Deletion only happens after the confirm callback agrees, and only for
        files whose copy succeeded.

        Raises:
            RemoteNotFoundError: If ``remote`` is not a directory
            TransferError: If no file could be copied
        """
        remote = remote.rstrip("/") or "/"
        self._require_directory(remote)

        job = TransferJob(source=remote, destination=str(local), mode=TransferMode.MOVE)
        job.files = self.enumerate_visible_files(remote)

        if not job.files:
            logger.info(f"No non-hidden files found in: {remote}")
            return MoveResult(job=job, outcome=MoveOutcome.NOTHING_TO_MOVE)

        try:
            ensure_directory(local)
        except OSError as e:
            raise TransferError(f"Cannot create local directory: {local}") from e

        logger.info(f"Found {len(job.files)} files to move from {remote}")
        warnings = self._copy_files(job, local)

        if not job.copied:
            raise TransferError(
                f"No files were copied from {remote}",
                hint="Nothing was deleted. Check device storage permissions and free local space.",
            )

        if self.confirm is None or not self.confirm(job):
            logger.info(f"Deletion declined; {len(job.copied)} copied files kept on both sides")
            return MoveResult(job=job, outcome=MoveOutcome.DECLINED, warnings=warnings)

        result = self._delete_copied(job, warnings)
        self.bridge.remove_empty_dirs(remote)
        return result

    def _copy_files(self, job: TransferJob, local: Path) -> t.List[str]:
        warnings = []

        with tqdm(total=len(job.files), desc="Copying", unit="file", disable=not self.show_progress) as pbar:
            for path in job.files:
                rel_path = relative_remote_path(path, job.source)
                pbar.set_postfix_str(rel_path)

                if self.bridge.pull(path, local / rel_path):
                    job.copied.append(path)
                else:
                    job.failed.append(path)
                    warnings.append(f"Failed to copy: {rel_path}")

                pbar.update(1)

        if job.failed:
            logger.warning(f"{len(job.failed)} file(s) failed to copy")
        logger.info(f"Copy complete: {len(job.copied)} file(s) copied")
        return warnings

    def _delete_copied(self, job: TransferJob, warnings: t.List[str]) -> MoveResult:
        result = MoveResult(job=job, outcome=MoveOutcome.COMPLETED, warnings=warnings)
        enumerated = set(job.files)

        for path in job.copied:
            if path not in enumerated or is_hidden_path(relative_remote_path(path, job.source)):
                continue

            if self.bridge.delete_file(path):
                result.deleted.append(path)
            else:
                result.delete_failed.append(path)

        if result.delete_failed:
            result.warnings.append(
                f"{len(result.delete_failed)} file(s) may not have been deleted. Check manually."
            )

        if result.warnings:
            result.outcome = MoveOutcome.COMPLETED_WITH_WARNINGS

        logger.info(f"Deleted {len(result.deleted)} file(s) from {job.source}")
        return result

    def explore(self, remote_paths: t.Sequence[str], dest: Path) -> t.Dict[str, bool]:
        """Pull several directories into ``dest`` for browsing; failures are cleaned up."""
        ensure_directory(dest)
        results = {}

        for remote in remote_paths:
            name = remote.rstrip("/").rsplit("/", 1)[-1]
            target = dest / name
            ok = self.bridge.pull(remote, target)
            if not ok and target.exists():
                shutil.rmtree(target, ignore_errors=True)
            results[remote] = ok

        return results
