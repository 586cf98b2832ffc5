"""Minecraft Bedrock world backup module initialization."""

from .backup import BatchResult, FullBackupResult, WorldBackupService
from .catalog import ExportMode, WorldCatalog, WorldEntry
from .exporter import ArchiveExporter, sanitize_name
from .report import BackupReport, ReportWriter, WorldIntegrity, inspect_world

__all__ = [
    # backup
    "BatchResult",
    "FullBackupResult",
    "WorldBackupService",
    # catalog
    "ExportMode",
    "WorldCatalog",
    "WorldEntry",
    # exporter
    "ArchiveExporter",
    "sanitize_name",
    # report
    "BackupReport",
    "ReportWriter",
    "WorldIntegrity",
    "inspect_world",
]
