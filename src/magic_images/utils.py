from __future__ import annotations

import hashlib
import logging
import os
import shutil
import tempfile
import time
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .detection import ImageFormat, TargetFormat, detect_format

LOGGER = logging.getLogger(__name__)

WORKSPACE_PREFIX = ".magic-images-tmp-"

SkipCallback = Callable[[Path], None]


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def map_output_path(
    *, input_path: Path, base_root: Path, output_root: Path, target: TargetFormat
) -> Path:
    """Mirror *input_path*'s position under *base_root* into *output_root*.

    The original extension is always replaced by the target's. When the base
    root is the file itself the output lands directly in *output_root*.
    """
    if input_path == base_root:
        relative_dir = Path()
    else:
        relative_dir = input_path.relative_to(base_root).parent
    return output_root / relative_dir / f"{input_path.stem}{target.extension}"


def _is_excluded(path: Path, excluded: set[Path]) -> bool:
    return bool(excluded) and path.resolve() in excluded


def iter_image_files(
    root: Path,
    *,
    recursive: bool,
    strict: bool = False,
    exclude: Iterable[Path] = (),
    on_skip: SkipCallback | None = None,
) -> Iterator[tuple[Path, ImageFormat]]:
    excluded = {path.resolve() for path in exclude}
    yield from _walk(root, recursive=recursive, strict=strict, excluded=excluded, on_skip=on_skip)


def _walk(
    directory: Path,
    *,
    recursive: bool,
    strict: bool,
    excluded: set[Path],
    on_skip: SkipCallback | None,
) -> Iterator[tuple[Path, ImageFormat]]:
    for entry in sorted(directory.iterdir()):
        if entry.is_dir():
            if recursive and not _is_excluded(entry, excluded):
                yield from _walk(entry, recursive=recursive, strict=strict, excluded=excluded, on_skip=on_skip)
            continue
        if not entry.is_file():
            LOGGER.debug("Ignoring non-regular entry: %s", entry)
            continue
        detected = detect_format(entry, strict=strict)
        if not detected.supported:
            LOGGER.warning("Skipping unsupported file: %s", entry)
            if on_skip is not None:
                on_skip(entry)
            continue
        yield entry, detected


def atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent, prefix=".partial-") as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


@contextmanager
def temporary_workspace(parent: Path | None = None) -> Iterator[Path]:
    """Create a uniquely named scratch directory and remove it on exit.

    Removal after a failure is best effort so the original error wins.
    """
    if parent is not None:
        parent.mkdir(parents=True, exist_ok=True)
    workspace = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=parent))
    LOGGER.debug("Created workspace %s", workspace)
    try:
        yield workspace
    except BaseException:
        shutil.rmtree(workspace, ignore_errors=True)
        raise
    shutil.rmtree(workspace)
