"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and a CLI command wrapper
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

import typer

from ..errors import (
    ConfigurationError,
    InvalidOffsetError,
    InvalidPathError,
    PathNotFoundError,
    UnsupportedMethodError,
)

T = TypeVar('T')

logger = logging.getLogger(__name__)

# Checked in order; the first matching class wins
EXIT_CODES = (
    (PathNotFoundError, 1),
    (InvalidPathError, 2),
    (InvalidOffsetError, 2),
    (UnsupportedMethodError, 2),
    (ConfigurationError, 2),
    (ValueError, 2),
)


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns:
    - 1: Path not found (PathNotFoundError)
    - 2: Invalid input or configuration (InvalidPathError, InvalidOffsetError,
      UnsupportedMethodError, ConfigurationError, ValueError)
    - 3: Remote or unknown error (KodoError and anything else)
    """
    for exc_type, code in EXIT_CODES:
        if isinstance(exc, exc_type):
            return code
    return 3


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes func and maps any exception to an exit code using typer.Exit,
    after printing the error to stderr.

    Raises:
        typer.Exit: With the mapped exit code if func raises
    """
    try:
        return func()
    except Exception as e:
        from .printers import print_error
        logger.debug("Command failed", exc_info=True)
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
