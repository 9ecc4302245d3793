from __future__ import annotations

from typing import Protocol

from ..detection import TargetFormat


class EncodeError(RuntimeError):
    """Raised when an image cannot be decoded or re-encoded."""


class Encoder(Protocol):
    def encode(self, data: bytes, target: TargetFormat, *, quality: int | None = None) -> bytes:  # pragma: no cover - interface
        ...
