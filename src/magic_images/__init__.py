"""Signature-based batch image format converter."""

__version__ = "1.0.0"

from .config import AppConfig, load_config
from .core import ConversionError, ConversionService
from .detection import ImageFormat, TargetFormat, detect_format
from .models import ConversionOptions, ConversionResult

__all__ = [
    "__version__",
    "AppConfig",
    "load_config",
    "ConversionError",
    "ConversionOptions",
    "ConversionResult",
    "ConversionService",
    "ImageFormat",
    "TargetFormat",
    "detect_format",
]
