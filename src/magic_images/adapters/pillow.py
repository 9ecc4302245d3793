from __future__ import annotations

import io

from PIL import Image, UnidentifiedImageError

from .base import EncodeError
from ..detection import TargetFormat

_JPEG_MODES = {"RGB", "L", "CMYK"}
_WEBP_MODES = {"RGB", "RGBA"}


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in {"RGBA", "LA", "PA"} or "transparency" in image.info


class PillowEncoder:
    """Re-encode image bytes with Pillow."""

    def encode(self, data: bytes, target: TargetFormat, *, quality: int | None = None) -> bytes:
        try:
            with Image.open(io.BytesIO(data)) as source:
                source.load()
                image = self._prepare(source, target)
                output = io.BytesIO()
                image.save(output, format=target.pillow_format, **self._save_options(target, quality))
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
            raise EncodeError(f"Cannot convert image to {target.value}: {exc}") from exc
        return output.getvalue()

    def _prepare(self, image: Image.Image, target: TargetFormat) -> Image.Image:
        if target.uses_quality and image.mode not in _JPEG_MODES:
            return image.convert("RGB")
        if target is TargetFormat.WEBP and image.mode not in _WEBP_MODES:
            return image.convert("RGBA" if _has_alpha(image) else "RGB")
        if target is TargetFormat.PNG and image.mode == "CMYK":
            return image.convert("RGB")
        return image

    def _save_options(self, target: TargetFormat, quality: int | None) -> dict[str, object]:
        options: dict[str, object] = {}
        if target.uses_quality and quality is not None:
            options["quality"] = quality
        return options
