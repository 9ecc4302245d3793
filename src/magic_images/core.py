from __future__ import annotations

import logging
import stat
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from rich.prompt import Confirm

from .adapters import EncodeError, Encoder, PillowEncoder
from .archive import ArchiveError, ArchiveWriter, ZipArchiveWriter, ensure_archive_suffix
from .config import AppConfig
from .detection import SUPPORTED_TARGETS, ImageFormat, TargetFormat, detect_format
from .logging import RunLogEntry, RunLogger, StageTimings
from .models import ConversionOptions, ConversionResult
from .utils import atomic_write, generate_run_id, iter_image_files, map_output_path, temporary_workspace

LOGGER = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]


class ConversionError(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


def validate_format(value: str) -> TargetFormat:
    target = TargetFormat.parse(value)
    if target is None:
        raise ConversionError(
            "UNSUPPORTED_FORMAT",
            f"Unsupported format: {value.strip().lower()}. Supported formats: {', '.join(SUPPORTED_TARGETS)}",
        )
    return target


def validate_quality(value: int | str) -> int:
    try:
        quality = int(str(value).strip())
    except ValueError:
        quality = 0
    if not 1 <= quality <= 100:
        raise ConversionError(
            "INVALID_QUALITY",
            f"Invalid quality value: {value}. Quality must be between 1 and 100",
        )
    return quality


def _ask(message: str) -> bool:
    return Confirm.ask(message, default=False)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


@dataclass(slots=True)
class _ConversionContext:
    run_id: str
    target: TargetFormat
    quality: int | None
    output_root: Path
    strict: bool
    logger: RunLogger
    result: ConversionResult


class ConversionService:
    def __init__(
        self,
        config: AppConfig,
        *,
        encoder: Encoder | None = None,
        archiver: ArchiveWriter | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        self._config = config
        self._encoder = encoder or PillowEncoder()
        self._archiver = archiver or ZipArchiveWriter(config.runtime.compression_level)
        self._confirm = confirm or _ask

    def convert(self, input_path: Path, options: ConversionOptions | None = None) -> ConversionResult:
        opts = options or ConversionOptions()
        target = validate_format(opts.target_format)
        quality = validate_quality(opts.quality) if target.uses_quality else None
        is_directory = self._stat_input(input_path)
        run_id = generate_run_id("convert")

        if opts.archive:
            result = self._convert_to_archive(input_path, is_directory, run_id, target, quality, opts)
        else:
            result = self._convert_to_directory(input_path, is_directory, run_id, target, quality, opts)

        result.summary = (
            f"Converted {len(result.converted)} file(s), skipped {len(result.skipped)} -> {result.output_path}"
        )
        return result

    def _stat_input(self, input_path: Path) -> bool:
        try:
            mode = input_path.stat().st_mode
        except OSError as exc:
            raise ConversionError("NOT_FOUND", f"Input path does not exist: {input_path}") from exc
        return stat.S_ISDIR(mode)

    def _build_context(
        self,
        *,
        run_id: str,
        target: TargetFormat,
        quality: int | None,
        output_root: Path,
        result_path: Path,
        options: ConversionOptions,
    ) -> _ConversionContext:
        return _ConversionContext(
            run_id=run_id,
            target=target,
            quality=quality,
            output_root=output_root,
            strict=options.strict_signatures or self._config.runtime.strict_signatures,
            logger=RunLogger(self._config.runtime.log_file),
            result=ConversionResult(run_id=run_id, output_path=result_path),
        )

    def _convert_to_directory(
        self,
        input_path: Path,
        is_directory: bool,
        run_id: str,
        target: TargetFormat,
        quality: int | None,
        options: ConversionOptions,
    ) -> ConversionResult:
        output_root = options.output or self._config.runtime.output_dir
        self._prepare_output_root(output_root, options)
        context = self._build_context(
            run_id=run_id,
            target=target,
            quality=quality,
            output_root=output_root,
            result_path=output_root,
            options=options,
        )
        self._run(input_path, is_directory, context, options)
        return context.result

    def _convert_to_archive(
        self,
        input_path: Path,
        is_directory: bool,
        run_id: str,
        target: TargetFormat,
        quality: int | None,
        options: ConversionOptions,
    ) -> ConversionResult:
        archive_path = ensure_archive_suffix(options.output or self._config.default_archive)
        try:
            with temporary_workspace(self._config.runtime.workspace_dir) as workspace:
                context = self._build_context(
                    run_id=run_id,
                    target=target,
                    quality=quality,
                    output_root=workspace,
                    result_path=archive_path,
                    options=options,
                )
                self._run(input_path, is_directory, context, options)
                context.result.archive_bytes = self._package(workspace, archive_path)
        except OSError as exc:
            raise ConversionError("FILESYSTEM", f"Temporary workspace error: {exc}") from exc
        return context.result

    def _prepare_output_root(self, output_root: Path, options: ConversionOptions) -> None:
        if output_root.exists():
            if not output_root.is_dir():
                raise ConversionError("FILESYSTEM", f"Output path exists and is not a directory: {output_root}")
            message = (
                f'Output directory "{output_root}" already exists. '
                "Do you want to proceed and potentially overwrite contents?"
            )
            if not options.assume_yes and not self._confirm(message):
                raise ConversionError("CANCELLED", "Operation cancelled by user")
            return
        try:
            output_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConversionError("FILESYSTEM", f"Cannot create output directory {output_root}: {exc}") from exc

    def _run(
        self,
        input_path: Path,
        is_directory: bool,
        context: _ConversionContext,
        options: ConversionOptions,
    ) -> None:
        if not is_directory:
            detected = detect_format(input_path, strict=context.strict)
            if not detected.supported:
                raise ConversionError("UNSUPPORTED_FILE_FORMAT", f"Unsupported file format: {input_path}")
            self._convert_file(input_path, input_path, detected, context)
            return

        candidates = iter_image_files(
            input_path,
            recursive=options.recursive,
            strict=context.strict,
            exclude=(context.output_root,),
            on_skip=lambda path: self._record_skip(path, context),
        )
        try:
            for path, detected in candidates:
                self._convert_file(path, input_path, detected, context)
        except OSError as exc:
            raise ConversionError("FILESYSTEM", f"Cannot read input directory: {exc}") from exc

    def _convert_file(
        self,
        path: Path,
        base_root: Path,
        detected: ImageFormat,
        context: _ConversionContext,
    ) -> None:
        output_path = map_output_path(
            input_path=path,
            base_root=base_root,
            output_root=context.output_root,
            target=context.target,
        )
        timings = StageTimings()

        start = time.perf_counter()
        try:
            data = path.read_bytes()
        except OSError as exc:
            self._log_failure(path, detected, "FILESYSTEM", context)
            raise ConversionError("FILESYSTEM", f"Cannot read {path}: {exc}") from exc
        timings.read_ms = _elapsed_ms(start)

        start = time.perf_counter()
        try:
            payload = self._encoder.encode(data, context.target, quality=context.quality)
        except EncodeError as exc:
            LOGGER.error("Failed to convert %s", path)
            self._log_failure(path, detected, "ENCODE_FAILED", context)
            raise ConversionError("ENCODE_FAILED", str(exc)) from exc
        timings.encode_ms = _elapsed_ms(start)

        start = time.perf_counter()
        try:
            atomic_write(output_path, payload)
        except OSError as exc:
            self._log_failure(path, detected, "FILESYSTEM", context)
            raise ConversionError("FILESYSTEM", f"Cannot write {output_path}: {exc}") from exc
        timings.write_ms = _elapsed_ms(start)

        LOGGER.info("Converted: %s -> %s", path, output_path)
        context.result.converted.append((path, output_path.relative_to(context.output_root)))
        context.logger.append(
            RunLogEntry(
                run_id=context.run_id,
                source=str(path),
                status="converted",
                detected_format=detected.value,
                output_path=str(output_path),
                size_bytes=len(payload),
                timings=timings,
            )
        )

    def _package(self, workspace: Path, archive_path: Path) -> int:
        try:
            return self._archiver.package_directory(workspace, archive_path)
        except ArchiveError as exc:
            raise ConversionError("ARCHIVE_FAILED", str(exc)) from exc

    def _record_skip(self, path: Path, context: _ConversionContext) -> None:
        context.result.skipped.append(path)
        context.logger.append(
            RunLogEntry(
                run_id=context.run_id,
                source=str(path),
                status="skipped",
                detected_format=ImageFormat.UNKNOWN.value,
            )
        )

    def _log_failure(
        self, path: Path, detected: ImageFormat, error_code: str, context: _ConversionContext
    ) -> None:
        context.logger.append(
            RunLogEntry(
                run_id=context.run_id,
                source=str(path),
                status="failure",
                detected_format=detected.value,
                error_code=error_code,
            )
        )


__all__ = [
    "ConversionService",
    "ConversionResult",
    "ConversionOptions",
    "ConversionError",
    "validate_format",
    "validate_quality",
]
