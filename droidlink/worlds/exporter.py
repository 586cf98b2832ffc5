"""Export of world folders as ``.mcworld`` archives.

A ``.mcworld`` file is a zip of the *contents* of a world folder; Minecraft
refuses archives that wrap the folder itself.
"""

import os
import re
import typing as t
import zipfile
from pathlib import Path

from ..exceptions import ArchiveToolMissingError, ExportError
from ..util.logging import get_logger
from ..util.paths import ensure_directory

try:
    import zlib
except ImportError:  # interpreter built without zlib
    zlib = None

logger = get_logger(__name__)

SEPARATOR_CHARS = re.compile(r"[/\n\r\t]")
WHITESPACE_RUN = re.compile(r"\s+")
UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]")


def sanitize_name(name: str, fallback: str) -> str:
    """Turn a display name into a filesystem-safe file name token."""
    safe = SEPARATOR_CHARS.sub(" ", name)
    safe = WHITESPACE_RUN.sub(" ", safe).strip()
    safe = UNSAFE_NAME_CHARS.sub("_", safe)
    return safe or fallback


class ArchiveExporter:
    """Writes contents-only deflate archives."""

    def __init__(self, suffix: str = ".mcworld") -> None:
        self.suffix = suffix

    def ensure_available(self) -> None:
        if zlib is None:
            raise ArchiveToolMissingError(
                "Cannot create archives: zlib (deflate) support is missing",
                hint="Install a Python build with zlib support.",
            )

    def export(
        self,
        local_dir: Path,
        display_name: str,
        output_root: Path,
        identifier: t.Optional[str] = None,
    ) -> Path:
        """Archive the contents of ``local_dir`` as ``<output_root>/<safe name><suffix>``.

        Raises:
            ArchiveToolMissingError: If deflate compression is unavailable
            ExportError: If ``local_dir`` is not a directory or writing fails
        """
        self.ensure_available()

        if not local_dir.is_dir():
            raise ExportError(f"Nothing to export, not a directory: {local_dir}")

        safe_name = sanitize_name(display_name, identifier or local_dir.name)
        out_file = ensure_directory(output_root) / f"{safe_name}{self.suffix}"
        if out_file.exists():
            logger.warning(f"Overwriting existing archive: {out_file}")

        try:
            with zipfile.ZipFile(out_file, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for current, dirs, files in os.walk(local_dir):
                    dirs.sort()
                    current_path = Path(current)

                    for name in dirs:
                        path = current_path / name
                        archive.write(path, path.relative_to(local_dir).as_posix())
                    for name in sorted(files):
                        path = current_path / name
                        archive.write(path, path.relative_to(local_dir).as_posix())
        except OSError as e:
            out_file.unlink(missing_ok=True)
            raise ExportError(f"Failed to create {out_file}: {e}") from e

        logger.info(f"Exported: {out_file}")
        return out_file
