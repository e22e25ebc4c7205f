"""
Storage interfaces for the KODO storage driver.

These protocols define two boundaries: ObjectStore is the set of remote
primitives the driver needs from KODO, and StorageDriver is the path-oriented
contract the registry host calls. Tests substitute an in-memory ObjectStore.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, BinaryIO, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from .parts import Part


@dataclass(frozen=True)
class ObjectInfo:
    """
    Remote metadata for one stored object.

    Invariants:
    - size: exact byte length (>= 0)
    - put_time: upload time in 100-nanosecond units since the Unix epoch
    """
    key: str
    size: int
    put_time: int = 0
    hash: str = ""
    mime_type: str = ""

    @property
    def mod_time(self) -> datetime:
        return datetime.fromtimestamp(self.put_time / 1e7, tz=timezone.utc)


@dataclass(frozen=True)
class ListPage:
    """One page of a prefix listing. An empty marker means no more pages."""
    items: List[ObjectInfo] = field(default_factory=list)
    prefixes: List[str] = field(default_factory=list)
    marker: str = ""


@dataclass(frozen=True)
class FileInfo:
    """
    Host-facing description of a path.

    Directories are derived from keys that share the path as a prefix, so
    they have no size or modification time of their own.
    """
    path: str
    size: int = 0
    mod_time: Optional[datetime] = None
    is_dir: bool = False


__all__ = ["ObjectInfo", "ListPage", "FileInfo", "ObjectStore", "StorageDriver"]


@runtime_checkable
class ObjectStore(Protocol):
    """Remote primitives of a flat key/value object store."""

    def stat(self, key: str) -> ObjectInfo:
        """
        Get metadata for key.

        Raises:
            KodoError: code 612 if key does not exist, other codes on failure
        """
        ...

    def list(self, prefix: str, *, delimiter: str = "", marker: str = "", limit: int = 1000) -> ListPage:
        """
        List one page of keys starting with prefix.

        With a delimiter, keys containing it after the prefix are rolled up
        into common prefixes (each ending with the delimiter).
        """
        ...

    def open(self, key: str, offset: int = 0) -> BinaryIO:
        """
        Open key for reading starting at offset.

        Raises:
            KodoError: code 404 if the download service has no such object
        """
        ...

    def put(self, key: str, data: BinaryIO, size: int) -> None:
        """Store size bytes read from data as the whole object at key."""
        ...

    def put_file(self, key: str, filename: str) -> None:
        """Store a local file as the whole object at key."""
        ...

    def put_parts(self, key: str, parts: Sequence[Part]) -> None:
        """
        Replace key with the concatenation of parts in one request.

        Raises:
            KodoError: If a referenced remote range is missing or the upload fails
        """
        ...

    def delete(self, key: str) -> None:
        ...

    def move(self, source_key: str, dest_key: str) -> None:
        ...

    def private_url(self, key: str, expires_in: int) -> str:
        """Signed download URL for key, valid for expires_in seconds."""
        ...


@runtime_checkable
class StorageDriver(Protocol):
    """The path-oriented storage contract owned by the registry host."""

    def name(self) -> str:
        ...

    def get_content(self, path: str) -> bytes:
        ...

    def put_content(self, path: str, content: bytes) -> None:
        ...

    def read_stream(self, path: str, offset: int = 0) -> BinaryIO:
        ...

    def write_stream(self, path: str, offset: int, reader: BinaryIO) -> int:
        ...

    def stat(self, path: str) -> FileInfo:
        ...

    def list(self, path: str) -> List[str]:
        ...

    def move(self, source_path: str, dest_path: str) -> None:
        ...

    def delete(self, path: str) -> None:
        ...

    def url_for(self, path: str, options: Optional[Mapping[str, Any]] = None) -> str:
        ...
