from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


@dataclass(slots=True)
class StageTimings:
    read_ms: float = 0.0
    encode_ms: float = 0.0
    write_ms: float = 0.0


@dataclass(slots=True)
class RunLogEntry:
    run_id: str
    source: str
    status: str
    detected_format: str
    output_path: str | None = None
    size_bytes: int = 0
    error_code: str | None = None
    timings: StageTimings = field(default_factory=StageTimings)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["timings"] = asdict(self.timings)
        return payload


class RunLogger:
    """Append one JSON line per processed file to a run log."""

    def __init__(self, log_file: Path | None) -> None:
        self._log_file = log_file

    @property
    def enabled(self) -> bool:
        return self._log_file is not None

    def append(self, entry: RunLogEntry) -> None:
        if self._log_file is None:
            return
        self._log_file.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        with self._log_file.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")
