"""Backup report and manifest for a full world retrieval."""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from ruamel.yaml import YAML

from ..util.logging import get_logger

logger = get_logger(__name__)


class WorldIntegrity(BaseModel):
    """Basic integrity flags for one pulled world."""

    identifier: str = Field(description="World folder name")
    display_name: Optional[str] = Field(default=None, description="First line of levelname.txt")
    has_level_dat: bool = Field(default=False, description="level.dat present")
    has_db: bool = Field(default=False, description="db/ directory present")
    db_file_count: int = Field(default=0, description="Files under db/")

    @property
    def ok(self) -> bool:
        return self.has_level_dat and self.has_db


class BackupReport(BaseModel):
    """Summary of a completed retrieval."""

    version: int = Field(default=1, description="Report format version")
    timestamp: str = Field(description="Backup folder timestamp")
    output: str = Field(description="Backup output directory")
    host: Optional[str] = Field(default=None, description="Device serial the data came from")
    source: str = Field(description="Remote path that was pulled")
    top_level: List[str] = Field(default_factory=list, description="Folders backed up under com.mojang")
    worlds_found: bool = Field(default=False, description="minecraftWorlds/ present")
    worlds: List[WorldIntegrity] = Field(default_factory=list, description="Per-world integrity")
    exported: List[str] = Field(default_factory=list, description="Exported archive paths")
    export_failures: Dict[str, str] = Field(default_factory=dict, description="World identifier -> export error")

    @property
    def total_worlds(self) -> int:
        return len(self.worlds)

    @property
    def healthy_worlds(self) -> int:
        return sum(1 for w in self.worlds if w.ok)


def inspect_world(world_dir: Path, name_file: str = "levelname.txt") -> WorldIntegrity:
    """Integrity flags for a local world folder."""
    name_path = world_dir / name_file
    display_name = None
    if name_path.is_file():
        text = name_path.read_text(errors="replace").replace("\r", "")
        display_name = text.split("\n", 1)[0].strip() or None

    db_dir = world_dir / "db"
    db_count = sum(1 for p in db_dir.rglob("*") if p.is_file()) if db_dir.is_dir() else 0

    return WorldIntegrity(
        identifier=world_dir.name,
        display_name=display_name,
        has_level_dat=(world_dir / "level.dat").is_file(),
        has_db=db_dir.is_dir(),
        db_file_count=db_count,
    )


def render_text(report: BackupReport, worlds_dir: Path) -> str:
    """Plain-text version of the report."""
    yes_no = {True: "yes", False: "no"}
    lines = [
        "Minecraft Bedrock backup report",
        f"Timestamp: {report.timestamp}",
        f"Output: {report.output}",
        f"Device: {report.host or 'unknown'}",
        f"Source: {report.source}",
        "",
        "Top-level folders backed up under com.mojang:",
    ]
    lines += report.top_level
    lines.append("")

    if not report.worlds_found:
        lines += [
            "No minecraftWorlds directory found at:",
            f"  {worlds_dir}",
            "Your Minecraft may be using a different storage mode, or access was blocked.",
        ]
        return "\n".join(lines) + "\n"

    lines.append("World folders found:")
    lines += [w.identifier for w in report.worlds]
    lines += ["", "World name sanity check (levelname.txt):"]
    for w in report.worlds:
        lines.append(f"  {w.identifier} -> {w.display_name or '(no levelname.txt)'}")

    lines += ["", "World basic integrity check:"]
    for w in report.worlds:
        lines.append(
            f"  {w.identifier} -> level.dat: {yes_no[w.has_level_dat]}, db/: {yes_no[w.has_db]}, "
            f"db files: {w.db_file_count}, overall: {yes_no[w.ok]}"
        )

    if report.exported:
        lines += ["", "Exported archives:"]
        lines += [f"  {p}" for p in report.exported]

    if report.export_failures:
        lines += ["", "Export failures:"]
        lines += [f"  {world_id}: {message}" for world_id, message in report.export_failures.items()]

    return "\n".join(lines) + "\n"


class ReportWriter:
    """Writes ``backup_report.txt`` and ``manifest.yaml`` into a backup folder."""

    def __init__(self, backup_path: Path):
        self.backup_path = backup_path
        self.report_path = backup_path / "backup_report.txt"
        self.manifest_path = backup_path / "manifest.yaml"

    def save(self, report: BackupReport, worlds_dir: Path) -> Path:
        self.backup_path.mkdir(parents=True, exist_ok=True)
        self.report_path.write_text(render_text(report, worlds_dir))

        yaml = YAML()
        yaml.default_flow_style = False
        yaml.width = 120
        with open(self.manifest_path, "w") as f:
            yaml.dump(report.model_dump(), f)

        logger.debug(f"Saved report to {self.report_path}")
        return self.report_path

    def load(self) -> Optional[BackupReport]:
        if not self.manifest_path.exists():
            return None

        yaml = YAML(typ="safe")
        with open(self.manifest_path, "r") as f:
            data = yaml.load(f)
        return BackupReport(**data)
