from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Protocol
from zipfile import ZIP_DEFLATED, ZipFile

LOGGER = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"


class ArchiveError(RuntimeError):
    """Raised when the output archive cannot be written."""


class ArchiveWriter(Protocol):
    def package_directory(self, source_dir: Path, destination: Path) -> int:  # pragma: no cover - interface
        ...


def ensure_archive_suffix(path: Path) -> Path:
    raw = str(path)
    if raw.endswith(ARCHIVE_SUFFIX):
        return path
    return Path(raw + ARCHIVE_SUFFIX)


class ZipArchiveWriter:
    """Package a directory tree into a deflate-compressed zip file."""

    def __init__(self, compression_level: int = 9) -> None:
        self._compression_level = compression_level

    def package_directory(self, source_dir: Path, destination: Path) -> int:
        if not source_dir.is_dir():
            raise ArchiveError(f"Archive source is not a directory: {source_dir}")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with ZipFile(
                destination, "w", compression=ZIP_DEFLATED, compresslevel=self._compression_level
            ) as archive:
                for file_path in sorted(source_dir.rglob("*")):
                    if not file_path.is_file():
                        continue
                    relative = file_path.relative_to(source_dir)
                    archive.write(file_path, relative.as_posix())
            size = destination.stat().st_size
        except (OSError, zipfile.LargeZipFile) as exc:
            raise ArchiveError(f"Failed to write archive {destination}: {exc}") from exc
        LOGGER.info("Zipped %d total bytes", size)
        return size
