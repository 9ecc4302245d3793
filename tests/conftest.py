from __future__ import annotations

import io
import struct
import zlib
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from magic_images.config import AppConfig, RuntimeConfig


def image_bytes(fmt: str, mode: str = "RGB", size: tuple[int, int] = (8, 6)) -> bytes:
    color = (200, 40, 40, 128) if mode == "RGBA" else (200, 40, 40)
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def _png_chunk(kind: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data))


def oversized_png_bytes(width: int = 20000, height: int = 20000) -> bytes:
    """A PNG header whose declared size trips Pillow's decompression bomb guard."""
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", b"")
        + _png_chunk(b"IEND", b"")
    )


@pytest.fixture
def write_image() -> Callable[..., Path]:
    def _write(path: Path, fmt: str = "PNG", mode: str = "RGB") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(image_bytes(fmt, mode))
        return path

    return _write


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    runtime = RuntimeConfig()
    runtime.output_dir = tmp_path / "output"
    runtime.workspace_dir = tmp_path / "workspaces"
    return AppConfig(runtime=runtime)
