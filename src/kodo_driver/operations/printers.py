"""
Human-readable output formatting.

Centralizes all CLI output so commands stay thin. Listings and URLs are
printed as plain lines so they can be piped; summaries use Rich.
"""
from __future__ import annotations

from typing import List

import typer
from rich.console import Console
from rich.table import Table

from ..storage.base import FileInfo

_console = Console(highlight=False)


def print_file_info(info: FileInfo) -> None:
    """Print stat output for one path as a two-column table."""
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Path", info.path)
    table.add_row("Type", "directory" if info.is_dir else "file")
    if not info.is_dir:
        table.add_row("Size", f"{info.size} ({_format_bytes(info.size)})")
        if info.mod_time is not None:
            table.add_row("Modified", info.mod_time.isoformat())

    _console.print(table)


def print_listing(paths: List[str]) -> None:
    for path in paths:
        typer.echo(path)


def print_write_summary(path: str, offset: int, written: int) -> None:
    _console.print(f"[bold]Wrote[/] {written} bytes to {path} at offset {offset}")


def print_put_summary(path: str, size: int) -> None:
    _console.print(f"[bold]Stored[/] {path} ({_format_bytes(size)})")


def print_move_summary(source: str, dest: str) -> None:
    _console.print(f"[bold]Moved[/] {source} -> {dest}")


def print_delete_summary(path: str) -> None:
    _console.print(f"[bold]Deleted[/] {path}")


def print_url(url: str) -> None:
    typer.echo(url)


def print_error(exc: BaseException) -> None:
    typer.echo(f"Error: {exc}", err=True)


def _format_bytes(size: int) -> str:
    """Format byte count in human-readable format."""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.1f} {unit}" if unit != 'B' else f"{size} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
