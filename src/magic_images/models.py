"""Domain models for image conversion runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ConversionOptions:
    """Options for a single conversion invocation.

    ``target_format`` and ``quality`` hold the raw user input; they are
    validated by the service before any file is touched. ``output`` of
    ``None`` selects the configured default directory or archive name.
    """

    target_format: str = "jpg"
    quality: int | str = 95
    output: Path | None = None
    recursive: bool = False
    archive: bool = False
    assume_yes: bool = False
    strict_signatures: bool = False


@dataclass(slots=True)
class ConversionResult:
    """Outcome of a successful conversion invocation."""

    run_id: str
    output_path: Path
    converted: list[tuple[Path, Path]] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    archive_bytes: int | None = None
    summary: str = ""


__all__ = [
    "ConversionOptions",
    "ConversionResult",
]
