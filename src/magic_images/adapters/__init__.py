from __future__ import annotations

from .base import EncodeError, Encoder
from .pillow import PillowEncoder

__all__ = [
    "EncodeError",
    "Encoder",
    "PillowEncoder",
]
