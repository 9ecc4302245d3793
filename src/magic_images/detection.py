from __future__ import annotations

from enum import Enum
from pathlib import Path

HEADER_SIZE = 12
MIN_HEADER_SIZE = 4

JPEG_SIGNATURE = b"\xff\xd8"
PNG_SIGNATURE = b"\x89PNG"
PNG_TRAILER = b"\r\n\x1a\n"
RIFF_SIGNATURE = b"RIFF"
WEBP_SIGNATURE = b"WEBP"


class ImageFormat(str, Enum):
    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"
    UNKNOWN = "unknown"

    @property
    def supported(self) -> bool:
        return self is not ImageFormat.UNKNOWN


class TargetFormat(str, Enum):
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def uses_quality(self) -> bool:
        return self in {TargetFormat.JPG, TargetFormat.JPEG}

    @property
    def pillow_format(self) -> str:
        return PILLOW_FORMATS[self]

    @classmethod
    def parse(cls, value: str) -> TargetFormat | None:
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


PILLOW_FORMATS: dict[TargetFormat, str] = {
    TargetFormat.JPG: "JPEG",
    TargetFormat.JPEG: "JPEG",
    TargetFormat.PNG: "PNG",
    TargetFormat.WEBP: "WEBP",
}

SUPPORTED_TARGETS: tuple[str, ...] = tuple(member.value for member in TargetFormat)


def sniff_bytes(header: bytes, *, strict: bool = False) -> ImageFormat:
    """Classify a leading byte buffer; only the first 12 bytes are inspected."""

    header = header[:HEADER_SIZE]
    if len(header) < MIN_HEADER_SIZE:
        return ImageFormat.UNKNOWN
    if header.startswith(JPEG_SIGNATURE):
        if not strict or header[2] == 0xFF:
            return ImageFormat.JPG
    if header.startswith(PNG_SIGNATURE):
        if not strict or header[4:8] == PNG_TRAILER:
            return ImageFormat.PNG
    if header.startswith(RIFF_SIGNATURE) and len(header) >= HEADER_SIZE:
        if header[8:12] == WEBP_SIGNATURE:
            return ImageFormat.WEBP
    return ImageFormat.UNKNOWN


def detect_format(path: Path, *, strict: bool = False) -> ImageFormat:
    """Return the image format of *path* from its signature, never from its name.

    Unreadable, missing or non-regular files are reported as ``ImageFormat.UNKNOWN``.
    """

    try:
        if not path.is_file():
            return ImageFormat.UNKNOWN
        with path.open("rb") as handle:
            header = handle.read(HEADER_SIZE)
    except OSError:
        return ImageFormat.UNKNOWN
    return sniff_bytes(header, strict=strict)


__all__ = [
    "ImageFormat",
    "TargetFormat",
    "SUPPORTED_TARGETS",
    "detect_format",
    "sniff_bytes",
]
