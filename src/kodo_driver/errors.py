"""
Storage driver error classes.

Provides the taxonomy of errors raised by the KODO storage driver. Remote
failures surface as KodoError; only the "no such key" case is translated into
PathNotFoundError, and only by the operations that distinguish it.
"""
from __future__ import annotations

from typing import Optional

# KODO status code for "no such file or directory"
KEY_NOT_EXISTS = 612


class StorageDriverError(Exception):
    """Base class for all storage driver errors."""
    pass


class PathNotFoundError(StorageDriverError):
    """
    No object or directory exists at the requested path.

    Raised when:
    - KODO returns status 612 for stat, move, read or delete
    - A download returns HTTP 404
    - Nothing is stored at or below a path being listed or deleted
    """

    def __init__(self, path: str):
        super().__init__(f"Path not found: {path}")
        self.path = path


class InvalidPathError(StorageDriverError):
    """Path does not satisfy the host's path syntax."""

    def __init__(self, path: str):
        super().__init__(f"Invalid path: {path}")
        self.path = path


class InvalidOffsetError(StorageDriverError):
    """Read or write offset is negative."""

    def __init__(self, path: str, offset: int):
        super().__init__(f"Invalid offset: {offset} for path: {path}")
        self.path = path
        self.offset = offset


class UnsupportedMethodError(StorageDriverError):
    """Driver cannot produce a URL for the requested HTTP method."""
    pass


class ConfigurationError(StorageDriverError, ValueError):
    """
    Required construction parameter missing or invalid.

    Subclasses ValueError so callers validating settings the usual way
    keep working.
    """
    pass


class KodoError(StorageDriverError):
    """
    Failure reported by a KODO service or by the network layer.

    Attributes:
        code: HTTP status code returned by KODO (612 for a missing key),
            or 0 when no response was received
        message: Server-provided error text, or the transport error text
    """

    def __init__(self, code: int, message: str, *, reqid: Optional[str] = None):
        super().__init__(f"KODO error {code}: {message}")
        self.code = code
        self.message = message
        self.reqid = reqid


def is_key_not_exists(err: BaseException) -> bool:
    """Return True if err is KODO's "no such key" error."""
    return isinstance(err, KodoError) and err.code == KEY_NOT_EXISTS


__all__ = [
    "KEY_NOT_EXISTS",
    "StorageDriverError",
    "PathNotFoundError",
    "InvalidPathError",
    "InvalidOffsetError",
    "UnsupportedMethodError",
    "ConfigurationError",
    "KodoError",
    "is_key_not_exists",
]
