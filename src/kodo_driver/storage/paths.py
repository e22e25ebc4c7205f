"""
Path handling for the KODO storage driver.

Host paths look like "/docker/registry/v2/blobs/..." and must match the host's
path syntax. Remote keys are the configured root directory followed by the
path, with any leading "/" trimmed.
"""
from __future__ import annotations

import re

from ..errors import InvalidPathError

__all__ = ["PATH_REGEXP", "is_valid_path", "check_path", "KeyMapper"]

# One or more "/component" segments; no trailing slash, no empty components
PATH_REGEXP = re.compile(r"^(/[A-Za-z0-9._-]+)+$")


def is_valid_path(path: str, *, allow_root: bool = False) -> bool:
    """
    Check a host path against the host's path syntax.

    Examples:
        >>> is_valid_path("/docker/registry")
        True
        >>> is_valid_path("/docker/registry/")
        False
        >>> is_valid_path("/", allow_root=True)
        True
    """
    if allow_root and path == "/":
        return True
    return bool(path) and PATH_REGEXP.match(path) is not None


def check_path(path: str, *, allow_root: bool = False) -> str:
    """
    Validate a host path and return it unchanged.

    Raises:
        InvalidPathError: If path violates the host's path syntax
    """
    if not is_valid_path(path, allow_root=allow_root):
        raise InvalidPathError(path)
    return path


class KeyMapper:
    """
    Translate between host paths and remote keys under a root directory.

    The root directory is stored without a trailing "/"; "" and "/" both mean
    the bucket root.
    """

    def __init__(self, root_directory: str = ""):
        self.root_directory = root_directory.rstrip("/")
        self.root_key = self.key_for("")

    def key_for(self, path: str) -> str:
        """Remote key for a host path; "/" maps to the root directory itself."""
        if path == "/":
            path = ""
        return (self.root_directory + path).lstrip("/")

    def dir_prefix(self, key: str) -> str:
        """Listing prefix for the children of key."""
        return key + "/" if key else ""

    def path_for(self, key: str) -> str:
        """
        Host path for a remote key, with the root directory removed.

        Examples:
            >>> KeyMapper("/registry").path_for("registry/docker/a")
            '/docker/a'
            >>> KeyMapper("").path_for("docker/a")
            '/docker/a'
        """
        key = key.rstrip("/")
        if self.root_key and key.startswith(self.root_key):
            key = key[len(self.root_key):]
        return "/" + key.lstrip("/")
