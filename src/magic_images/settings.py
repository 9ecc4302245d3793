from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from .config import CONFIG_FILE

ENV_PREFIX = "MAGIC_IMAGES_"


@dataclass(frozen=True, slots=True)
class Settings:
    """Process settings sourced from environment variables."""

    config_path: Path = CONFIG_FILE


def _read_settings() -> Settings:
    config_env = os.getenv(f"{ENV_PREFIX}CONFIG_PATH")
    config_path = Path(config_env) if config_env else CONFIG_FILE
    return Settings(config_path=config_path)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return _read_settings()


__all__ = ["ENV_PREFIX", "Settings", "get_settings"]
