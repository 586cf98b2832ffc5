"""Minecraft Bedrock world backups over adb."""

import os
import shutil
import typing as t
from dataclasses import dataclass, field
from pathlib import Path

from ..adb.client import ADBClient
from ..config import WorldsConfig
from ..exceptions import DroidLinkError, RemoteNotFoundError, UnreachableError
from ..resolver import PathResolver
from ..transfer import TransferEngine
from ..util.logging import get_logger
from ..util.paths import ensure_directory
from ..util.timeutil import timestamp_now
from .catalog import WorldCatalog, WorldEntry
from .exporter import ArchiveExporter
from .report import BackupReport, ReportWriter, inspect_world

logger = get_logger(__name__)

DATA_ACCESS_HINT = (
    "Possible causes:\n"
    "  - Android is blocking access on this build\n"
    "  - The path differs due to the Minecraft storage setting\n"
    "  - USB debugging permission not granted\n"
    "Tip: open Minecraft once, confirm worlds exist, close it, then retry."
)


@dataclass
class BatchResult:
    """Per-world outcome of a multi-world backup."""

    backup_dir: Path
    succeeded: t.Dict[str, Path] = field(default_factory=dict)
    failures: t.Dict[str, str] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failures)


@dataclass
class FullBackupResult:
    backup_dir: Path
    report_path: Path
    report: BackupReport
    archives: t.List[Path] = field(default_factory=list)


class WorldBackupService:
    """Backs up worlds as folders or ``.mcworld`` archives."""

    def __init__(
        self,
        bridge: ADBClient,
        config: WorldsConfig,
        engine: t.Optional[TransferEngine] = None,
        catalog: t.Optional[WorldCatalog] = None,
        exporter: t.Optional[ArchiveExporter] = None,
        resolver: t.Optional[PathResolver] = None,
    ) -> None:
        self.bridge = bridge
        self.config = config
        self.engine = engine or TransferEngine(bridge, show_progress=False)
        self.catalog = catalog or WorldCatalog(bridge, name_file=config.name_file)
        self.exporter = exporter or ArchiveExporter(suffix=config.archive_suffix)
        self.resolver = resolver or PathResolver(bridge)

    def _timestamp(self) -> str:
        return timestamp_now(self.config.timestamp_format)

    def locate_worlds_root(self) -> str:
        """Remote ``minecraftWorlds`` directory under the first reachable data root."""
        data_root = self.resolver.resolve(self.config.data_candidates, hint=DATA_ACCESS_HINT)
        worlds_root = f"{data_root.rstrip('/')}/{self.config.worlds_dirname}"
        if not self.bridge.is_directory(worlds_root):
            raise RemoteNotFoundError(worlds_root)
        return worlds_root

    def list_worlds(self) -> t.List[WorldEntry]:
        return self.catalog.list_entries(self.locate_worlds_root())

    def backup_world_folder(self, entry: WorldEntry, backup_dir: t.Optional[Path] = None) -> Path:
        """Copy a world folder to ``<backup_root>/world-folders/<timestamp>/<identifier>``."""
        if backup_dir is None:
            backup_dir = self.config.backup_root / "world-folders" / self._timestamp()

        dest = backup_dir / entry.identifier
        logger.info(f"Backing up world: {entry.display_name} -> {dest}")
        return self.engine.pull(entry.remote_path, dest)

    def export_world(self, entry: WorldEntry, output_root: t.Optional[Path] = None) -> Path:
        """Pull a world into a staging folder and export it as an archive."""
        if output_root is None:
            output_root = self.config.backup_root / "mcworld-files" / self._timestamp()

        staging = ensure_directory(output_root) / f".temp_{entry.identifier}"
        world_dir = staging / entry.identifier
        logger.info(f"Exporting world: {entry.display_name}")

        try:
            self.engine.pull(entry.remote_path, world_dir)
            return self.exporter.export(world_dir, entry.display_name, output_root, entry.identifier)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    def backup_selection(self, entries: t.Sequence[WorldEntry], archive: bool = False) -> BatchResult:
        """Back up several worlds into one timestamped folder; failures do not stop the batch."""
        kind = "mcworld-files" if archive else "world-folders"
        result = BatchResult(backup_dir=self.config.backup_root / kind / self._timestamp())

        for entry in entries:
            try:
                if archive:
                    path = self.export_world(entry, result.backup_dir)
                else:
                    path = self.backup_world_folder(entry, result.backup_dir)
            except DroidLinkError as e:
                logger.warning(f"Failed to back up {entry.display_name}: {e}")
                result.failures[entry.identifier] = str(e)
                continue
            result.succeeded[entry.identifier] = path

        return result

    def full_backup(
        self,
        out_dir: Path,
        export_archives: bool = False,
        host: t.Optional[str] = None,
    ) -> FullBackupResult:
        """Pull the whole com.mojang tree, write the report, optionally export every world.

        Raises:
            UnreachableError: If no data candidate could be pulled
        """
        ts = self._timestamp()
        dest_root = ensure_directory(out_dir / ts)
        dest_data = dest_root / "com.mojang"

        source = None
        for candidate in self.config.data_candidates:
            logger.info(f"Attempting adb pull from {candidate}")
            if self.bridge.pull(candidate, dest_data):
                source = candidate
                break
            shutil.rmtree(dest_data, ignore_errors=True)

        if source is None:
            raise UnreachableError(self.config.data_candidates, hint=DATA_ACCESS_HINT)

        worlds_dir = dest_data / self.config.worlds_dirname
        report = BackupReport(
            timestamp=ts,
            output=str(dest_root),
            host=host,
            source=source,
            top_level=sorted(os.listdir(dest_data)) if dest_data.is_dir() else [],
            worlds_found=worlds_dir.is_dir(),
        )
        if report.worlds_found:
            report.worlds = [
                inspect_world(world, self.config.name_file)
                for world in sorted(worlds_dir.iterdir())
                if world.is_dir()
            ]

        archives = []
        if export_archives:
            if not report.worlds_found:
                logger.warning(f"Cannot export archives because {self.config.worlds_dirname}/ was not found")
            else:
                export_dir = dest_root / "mcworld_exports"
                for world in report.worlds:
                    try:
                        archives.append(self.exporter.export(
                            worlds_dir / world.identifier,
                            world.display_name or world.identifier,
                            export_dir,
                            world.identifier,
                        ))
                    except DroidLinkError as e:
                        logger.warning(f"Failed to export {world.identifier}: {e}")
                        report.export_failures[world.identifier] = str(e)
                report.exported = [str(p) for p in archives]

        report_path = ReportWriter(dest_root).save(report, worlds_dir)
        return FullBackupResult(backup_dir=dest_root, report_path=report_path, report=report, archives=archives)
