from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .detection import TargetFormat


CONFIG_FILE = Path("config.toml")


@dataclass(slots=True)
class RuntimeConfig:
    default_format: str = "jpg"
    default_quality: int = 95
    output_dir: Path = Path("output")
    archive_name: str = "output.zip"
    compression_level: int = 9
    workspace_dir: Path | None = None
    strict_signatures: bool = False
    log_file: Path | None = None


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    @property
    def default_archive(self) -> Path:
        return Path(self.runtime.archive_name)


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _optional_path(value: object | None) -> Path | None:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise TypeError(f"config: expected a non-empty path string, got {value!r}")
    return Path(value)


def _get_bool(data: Mapping[str, object], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise TypeError(f"config: runtime.{key} must be a bool")
    return value


def _validate(runtime: RuntimeConfig) -> None:
    if TargetFormat.parse(runtime.default_format) is None:
        raise ValueError(f"config: runtime.default_format is not supported: {runtime.default_format}")
    if not 1 <= runtime.default_quality <= 100:
        raise ValueError("config: runtime.default_quality must be in [1,100]")
    if not 0 <= runtime.compression_level <= 9:
        raise ValueError("config: runtime.compression_level must be in [0,9]")
    if not runtime.archive_name.strip():
        raise ValueError("config: runtime.archive_name must not be empty")


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    runtime = RuntimeConfig(
        default_format=str(data.get("default_format", "jpg")),
        default_quality=int(data.get("default_quality", 95)),
        output_dir=Path(str(data.get("output_dir", "output"))),
        archive_name=str(data.get("archive_name", "output.zip")),
        compression_level=int(data.get("compression_level", 9)),
        workspace_dir=_optional_path(data.get("workspace_dir")),
        strict_signatures=_get_bool(data, "strict_signatures", False),
        log_file=_optional_path(data.get("log_file")),
    )
    _validate(runtime)
    return runtime


def load_config(path: Path | None = None) -> AppConfig:
    path = path or CONFIG_FILE
    raw = _read_toml(path)
    runtime_data = raw.get("runtime") if isinstance(raw, Mapping) else None
    if runtime_data is not None and not isinstance(runtime_data, Mapping):
        raise TypeError("config: [runtime] must be a TOML table")
    return AppConfig(runtime=_build_runtime(runtime_data))
