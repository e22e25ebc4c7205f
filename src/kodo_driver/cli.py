"""
KODO storage driver CLI

Operator commands over the same driver the registry uses, configured from
KODO_* environment variables:
- stat: Describe a file or derived directory
- ls: List direct children of a directory
- cat: Print content, optionally from an offset
- put: Upload a local file as a whole object
- write: Write a local file at an offset into an object
- rm: Delete a path and everything below it
- mv: Move an object
- url: Print a signed download URL
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import typer

from .cli_context import CLIContext
from .operations import run_and_exit
from .operations.printers import (
    print_delete_summary, print_file_info, print_listing, print_move_summary,
    print_put_summary, print_url, print_write_summary,
)

app = typer.Typer(name="kodo-driver", help="KODO storage driver CLI")


def _get_context() -> CLIContext:
    return CLIContext.from_env()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    """KODO storage driver CLI."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")


@app.command()
def stat(path: str = typer.Argument(..., help="Path to describe, e.g. /docker/registry")):
    """Describe a file or directory."""
    def _execute():
        info = _get_context().driver.stat(path)
        print_file_info(info)

    run_and_exit(_execute)


@app.command("ls")
def list_cmd(path: str = typer.Argument("/", help="Directory to list")):
    """List the direct children of a directory."""
    def _execute():
        print_listing(_get_context().driver.list(path))

    run_and_exit(_execute)


@app.command()
def cat(
    path: str = typer.Argument(..., help="Path to read"),
    offset: int = typer.Option(0, "--offset", help="Byte offset to start reading from"),
):
    """Print the content stored at a path."""
    def _execute():
        with _get_context().driver.read_stream(path, offset) as stream:
            typer.echo(stream.read(), nl=False)

    run_and_exit(_execute)


@app.command()
def put(
    path: str = typer.Argument(..., help="Destination path"),
    src: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Local file to upload"),
):
    """Upload a local file, replacing any object at the path."""
    def _execute():
        content = src.read_bytes()
        _get_context().driver.put_content(path, content)
        print_put_summary(path, len(content))

    run_and_exit(_execute)


@app.command()
def write(
    path: str = typer.Argument(..., help="Destination path"),
    src: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Local file to write"),
    offset: int = typer.Option(0, "--offset", help="Byte offset to write at"),
):
    """Write a local file at an offset into the object at a path."""
    def _execute():
        with src.open("rb") as reader:
            written = _get_context().driver.write_stream(path, offset, reader)
        print_write_summary(path, offset, written)

    run_and_exit(_execute)


@app.command("rm")
def remove(path: str = typer.Argument(..., help="Path to delete recursively")):
    """Delete a path and everything stored below it."""
    def _execute():
        _get_context().driver.delete(path)
        print_delete_summary(path)

    run_and_exit(_execute)


@app.command("mv")
def move(
    source: str = typer.Argument(..., help="Source path"),
    dest: str = typer.Argument(..., help="Destination path"),
):
    """Move an object to a new path."""
    def _execute():
        _get_context().driver.move(source, dest)
        print_move_summary(source, dest)

    run_and_exit(_execute)


@app.command()
def url(
    path: str = typer.Argument(..., help="Path to sign"),
    expires_in: Optional[int] = typer.Option(None, "--expires-in", help="Lifetime in seconds (default from settings)"),
    method: str = typer.Option("GET", "--method", help="HTTP method the URL is used with"),
):
    """Print a signed download URL."""
    def _execute():
        options = {"method": method}
        if expires_in is not None:
            options["expiry"] = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        print_url(_get_context().driver.url_for(path, options))

    run_and_exit(_execute)


if __name__ == "__main__":
    app()
