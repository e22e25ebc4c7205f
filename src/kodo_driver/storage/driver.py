"""
KODO storage driver.

Implements the registry host's path-oriented storage contract on top of an
ObjectStore. Because KODO is a flat key/value store, directories are derived:
a path is a directory when some key exists below it, and such directories
have no size or modification time.
"""
from __future__ import annotations

import io
import logging
import time
from datetime import datetime
from typing import Any, BinaryIO, Iterable, List, Mapping, Optional, Union

from ..errors import (
    InvalidOffsetError,
    KodoError,
    PathNotFoundError,
    UnsupportedMethodError,
    is_key_not_exists,
)
from ..settings import Settings
from .base import FileInfo, ObjectStore
from .parts import ExistingObject, RangeWriter
from .paths import KeyMapper, check_path

__all__ = ["DRIVER_NAME", "KodoDriver"]

logger = logging.getLogger(__name__)

DRIVER_NAME = "kodo"


class KodoDriver:
    """
    StorageDriver backed by a KODO bucket.

    Holds only immutable settings and the object store, so one instance may
    serve concurrent calls. Every public method validates its paths before
    touching the store.
    """

    def __init__(self, settings: Settings, store: Optional[ObjectStore] = None):
        """
        Initialize the driver.

        Args:
            settings: Validated driver settings
            store: Object store to use; defaults to a KodoClient for settings
        """
        if store is None:
            from .client import KodoClient
            store = KodoClient(settings)

        self._settings = settings
        self._store = store
        self._keys = KeyMapper(settings.root_directory)
        self._writer = RangeWriter(store, scratch_dir=settings.scratch_dir)

    def name(self) -> str:
        """Registration name of the driver."""
        return DRIVER_NAME

    def get_content(self, path: str) -> bytes:
        """
        Retrieve the content stored at path.

        Intended for small objects such as manifests and link files.
        """
        with self.read_stream(path, 0) as stream:
            return stream.read()

    def put_content(self, path: str, content: bytes) -> None:
        """Store content at path, replacing any existing object."""
        check_path(path)
        key = self._keys.key_for(path)
        logger.debug(f"put_content {path} -> {key} ({len(content)} bytes)")
        self._store.put(key, io.BytesIO(content), len(content))

    def read_stream(self, path: str, offset: int = 0) -> BinaryIO:
        """
        Open the content at path for reading from offset.

        Returns:
            Readable stream; empty when offset is at or beyond the end

        Raises:
            PathNotFoundError: If nothing is stored at path
            InvalidOffsetError: If offset is negative
        """
        check_path(path)
        if offset < 0:
            raise InvalidOffsetError(path, offset)

        key = self._keys.key_for(path)
        try:
            info = self._store.stat(key)
        except KodoError as e:
            if is_key_not_exists(e):
                raise PathNotFoundError(path) from e
            raise

        if offset >= info.size:
            return io.BytesIO(b"")

        try:
            return self._store.open(key, offset)
        except KodoError as e:
            if e.code == 404 or is_key_not_exists(e):
                raise PathNotFoundError(path) from e
            raise

    def write_stream(self, path: str, offset: int, reader: Union[BinaryIO, Iterable[bytes]]) -> int:
        """
        Write reader's content at offset into the object at path.

        Writing at offset 0 over an existing object keeps any old bytes
        beyond the new length; writing past the end fills the gap with zeros.

        Returns:
            Number of bytes consumed from reader

        Raises:
            InvalidOffsetError: If offset is negative
            KodoError: If the remote upload fails
        """
        check_path(path)
        if offset < 0:
            raise InvalidOffsetError(path, offset)

        key = self._keys.key_for(path)
        existing = self._lookup(key)
        return self._writer.write(existing, offset, reader)

    def stat(self, path: str) -> FileInfo:
        """
        Describe the object or derived directory at path.

        Raises:
            PathNotFoundError: If neither an object nor any key below path exists
        """
        check_path(path, allow_root=True)
        key = self._keys.key_for(path)

        if key:
            try:
                info = self._store.stat(key)
                return FileInfo(path=path, size=info.size, mod_time=info.mod_time, is_dir=False)
            except KodoError as e:
                if not is_key_not_exists(e):
                    raise

        page = self._store.list(self._keys.dir_prefix(key), limit=1)
        if not page.items:
            raise PathNotFoundError(path)
        return FileInfo(path=path, is_dir=True)

    def list(self, path: str) -> List[str]:
        """
        List the direct children of path, files first, then directories.

        Raises:
            PathNotFoundError: If path is not the root and has no children
        """
        check_path(path, allow_root=True)
        prefix = self._keys.dir_prefix(self._keys.key_for(path))

        files: List[str] = []
        directories: List[str] = []
        marker = ""
        while True:
            page = self._store.list(prefix, delimiter="/", marker=marker, limit=self._settings.list_limit)
            files.extend(self._keys.path_for(item.key) for item in page.items)
            directories.extend(self._keys.path_for(p) for p in page.prefixes)
            marker = page.marker
            if not marker:
                break

        if path != "/" and not files and not directories:
            raise PathNotFoundError(path)
        return files + directories

    def move(self, source_path: str, dest_path: str) -> None:
        """
        Move the object at source_path to dest_path, replacing any object there.

        Raises:
            PathNotFoundError: If nothing is stored at source_path
        """
        check_path(source_path)
        check_path(dest_path)
        source_key = self._keys.key_for(source_path)
        dest_key = self._keys.key_for(dest_path)

        try:
            self._store.stat(source_key)
        except KodoError as e:
            if is_key_not_exists(e):
                raise PathNotFoundError(source_path) from e
            raise

        try:
            self._store.delete(dest_key)
        except KodoError as e:
            if not is_key_not_exists(e):
                raise

        try:
            self._store.move(source_key, dest_key)
        except KodoError as e:
            if is_key_not_exists(e):
                raise PathNotFoundError(source_path) from e
            raise

    def delete(self, path: str) -> None:
        """
        Delete the object at path and everything stored below it.

        Raises:
            PathNotFoundError: If no key matches path
        """
        check_path(path)
        key = self._keys.key_for(path)
        below = self._keys.dir_prefix(key)

        deleted = 0
        marker = ""
        while True:
            page = self._store.list(key, marker=marker, limit=self._settings.list_limit)
            for item in page.items:
                # Skip siblings sharing the prefix, e.g. "/ab" when deleting "/a"
                if item.key != key and not item.key.startswith(below):
                    continue
                try:
                    self._store.delete(item.key)
                except KodoError as e:
                    if not is_key_not_exists(e):
                        raise
                deleted += 1
            marker = page.marker
            if not marker:
                break

        if deleted == 0:
            raise PathNotFoundError(path)
        logger.debug(f"Deleted {deleted} objects under {path}")

    def url_for(self, path: str, options: Optional[Mapping[str, Any]] = None) -> str:
        """
        Signed URL from which the content at path can be downloaded.

        Options:
            method: "GET" (default) or "HEAD"
            expiry: datetime after which the URL stops working; ignored unless
                in the future

        Raises:
            UnsupportedMethodError: For any method other than GET or HEAD
        """
        check_path(path)
        options = options or {}

        method = options.get("method", "GET")
        if method not in ("GET", "HEAD"):
            raise UnsupportedMethodError(f"{DRIVER_NAME}: unsupported method {method}")

        expires_in = self._settings.default_expiry_s
        expiry = options.get("expiry")
        if isinstance(expiry, datetime):
            remaining = int(expiry.timestamp() - time.time())
            if remaining > 0:
                expires_in = remaining

        return self._store.private_url(self._keys.key_for(path), expires_in)

    def _lookup(self, key: str) -> ExistingObject:
        """Snapshot the object at key; a missing key is not an error."""
        try:
            info = self._store.stat(key)
        except KodoError as e:
            if is_key_not_exists(e):
                return ExistingObject(key=key, exists=False)
            raise
        return ExistingObject(key=key, size=info.size, exists=True)
