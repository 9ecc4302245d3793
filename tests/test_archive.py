from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from magic_images.archive import ArchiveError, ZipArchiveWriter, ensure_archive_suffix


def test_ensure_archive_suffix() -> None:
    assert ensure_archive_suffix(Path("result")) == Path("result.zip")
    assert ensure_archive_suffix(Path("out/output.zip")) == Path("out/output.zip")
    assert ensure_archive_suffix(Path("images.tar")) == Path("images.tar.zip")


def test_ensure_archive_suffix_on_dot_paths() -> None:
    assert ensure_archive_suffix(Path(".")) == Path("..zip")


def test_package_directory_keeps_relative_layout(tmp_path: Path) -> None:
    source = tmp_path / "src"
    (source / "nested").mkdir(parents=True)
    (source / "a.png").write_bytes(b"a" * 100)
    (source / "nested" / "b.png").write_bytes(b"b" * 100)
    destination = tmp_path / "dist" / "bundle.zip"

    size = ZipArchiveWriter(compression_level=9).package_directory(source, destination)

    assert size == destination.stat().st_size
    with zipfile.ZipFile(destination) as archive:
        assert sorted(archive.namelist()) == ["a.png", "nested/b.png"]
        assert archive.read("nested/b.png") == b"b" * 100
        assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in archive.infolist())


def test_package_directory_missing_source(tmp_path: Path) -> None:
    with pytest.raises(ArchiveError):
        ZipArchiveWriter().package_directory(tmp_path / "missing", tmp_path / "out.zip")


def test_package_directory_unwritable_destination(tmp_path: Path) -> None:
    source = tmp_path / "src"
    source.mkdir()
    (source / "a.png").write_bytes(b"a")
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    with pytest.raises(ArchiveError):
        ZipArchiveWriter().package_directory(source, blocker / "out.zip")


def test_package_directory_onto_existing_directory(tmp_path: Path) -> None:
    source = tmp_path / "src"
    source.mkdir()
    (source / "a.png").write_bytes(b"a")
    occupied = tmp_path / "taken.zip"
    occupied.mkdir()
    with pytest.raises(ArchiveError):
        ZipArchiveWriter().package_directory(source, occupied)
