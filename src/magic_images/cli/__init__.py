from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .. import __version__
from ..config import AppConfig, load_config
from ..core import ConversionError, ConversionService
from ..detection import ImageFormat, detect_format
from ..models import ConversionOptions
from ..settings import get_settings

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(help="CLI tool for image format conversion")


def _load_config(path: Path | None) -> AppConfig:
    return load_config(path or get_settings().config_path)


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("magic_images")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_time=False, show_path=False))


def _confirm(message: str) -> bool:
    try:
        return typer.confirm(message, default=False)
    except typer.Abort:
        return False


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"magic-images {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Convert images between JPEG, PNG and WebP."""


@app.command()
def convert(
    path: Path = typer.Argument(..., help="Path to image file or directory"),
    fmt: str | None = typer.Option(None, "--format", "-f", help="Output format (webp, jpg, png)"),
    quality: str | None = typer.Option(None, "--quality", "-q", help="JPEG quality (1-100)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output directory or archive path"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Convert files in subdirectories recursively"),
    zip_output: bool = typer.Option(False, "--zip", help="Output as a zip archive instead of directory"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Reuse an existing output directory without asking"),
    strict: bool = typer.Option(False, "--strict", help="Require full PNG/JPEG signatures"),
    log_file: Path | None = typer.Option(None, "--log-file", help="Append a JSON line per file to this log"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    _configure_logging(verbose)
    try:
        cfg = _load_config(config)
    except (OSError, TypeError, ValueError) as exc:
        err_console.print(f"Error: {exc}", style="red", markup=False, highlight=False)
        raise typer.Exit(1) from exc
    if log_file is not None:
        cfg.runtime.log_file = log_file

    options = ConversionOptions(
        target_format=fmt if fmt is not None else cfg.runtime.default_format,
        quality=quality if quality is not None else cfg.runtime.default_quality,
        output=output,
        recursive=recursive,
        archive=zip_output,
        assume_yes=yes,
        strict_signatures=strict,
    )
    service = ConversionService(cfg, confirm=_confirm)
    try:
        result = service.convert(path, options)
    except ConversionError as exc:
        err_console.print(f"Error: {exc}", style="red", markup=False, highlight=False)
        raise typer.Exit(1) from exc
    console.print(result.summary, markup=False, highlight=False)
    console.print(
        f"Conversion completed successfully! Output: {result.output_path}",
        style="green",
        markup=False,
        highlight=False,
    )


@app.command()
def detect(
    paths: list[Path] = typer.Argument(..., help="Files to inspect"),
    strict: bool = typer.Option(False, "--strict", help="Require full PNG/JPEG signatures"),
) -> None:
    """Print the format each file's signature reports."""
    table = Table(title="Detected formats")
    table.add_column("Path")
    table.add_column("Format")
    unknown = 0
    for path in paths:
        detected = detect_format(path, strict=strict)
        if detected is ImageFormat.UNKNOWN:
            unknown += 1
        table.add_row(str(path), detected.value)
    console.print(table)
    if unknown:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
