"""
Range-write coordinator.

KODO objects are immutable, so writing at an offset into an existing object is
emulated: the incoming bytes are spilled to a local scratch file, a plan of
parts is built (ranges of the existing object and local bytes), and the plan
is submitted to the upload service's compose-from-parts call, which replaces
the object with the concatenation of the parts.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO, Iterable, List, Optional, Union

from ..errors import InvalidOffsetError

if TYPE_CHECKING:
    from .base import ObjectStore

__all__ = [
    "TO_END",
    "RemoteRange",
    "LocalBytes",
    "ZeroReader",
    "Part",
    "ExistingObject",
    "plan_parts",
    "RangeWriter",
]

logger = logging.getLogger(__name__)

TO_END = -1
CHUNK_SIZE = 1024 * 1024  # 1 MiB
SCRATCH_PREFIX = "kodo_driver"


@dataclass(frozen=True)
class RemoteRange:
    """
    Bytes [start, end) of an existing remote object.

    end == TO_END selects everything from start to the end of the object.
    """
    key: str
    start: int
    end: int = TO_END


@dataclass(frozen=True, eq=False)
class LocalBytes:
    """length bytes read from source, starting at its current position."""
    source: BinaryIO
    length: int

    @classmethod
    def zeros(cls, length: int) -> LocalBytes:
        return cls(source=ZeroReader(length), length=length)


class ZeroReader:
    """
    Yields length zero bytes, at most CHUNK_SIZE per read.

    Fills the gap when writing past the end of an object without holding the
    whole gap in memory.
    """

    def __init__(self, length: int):
        self._remaining = length

    def read(self, size: int = -1) -> bytes:
        if size < 0:
            size = self._remaining
        n = min(size, self._remaining, CHUNK_SIZE)
        self._remaining -= n
        return bytes(n)


Part = Union[RemoteRange, LocalBytes]


@dataclass(frozen=True)
class ExistingObject:
    """Snapshot of the object being written to, taken once per write."""
    key: str
    size: int = 0
    exists: bool = False


def plan_parts(existing: ExistingObject, offset: int, source: BinaryIO, written: int) -> List[Part]:
    """
    Build the ordered part list that writes source at offset into existing.

    Args:
        existing: Snapshot of the current object at the target key
        offset: Byte offset of the write (>= 0)
        source: Local stream holding the incoming bytes
        written: Number of incoming bytes in source

    Returns:
        Parts whose concatenation is the updated object. When nothing exists
        at the key the plan is just the incoming bytes, whatever the offset.

    Raises:
        InvalidOffsetError: If offset is negative

    Examples:
        Existing "hello world" (11 bytes), write "X" at 0:
            [LocalBytes(1), RemoteRange(key, 1, TO_END)]  -> "Xello world"
        Existing "abc" (3 bytes), write "Z" at 5:
            [RemoteRange(key, 0, TO_END), zeros(2), LocalBytes(1)]  -> "abc\\0\\0Z"
    """
    if offset < 0:
        raise InvalidOffsetError(existing.key, offset)

    incoming = LocalBytes(source=source, length=written)
    if not existing.exists:
        return [incoming]

    key, size = existing.key, existing.size
    parts: List[Part] = []

    if offset == 0:
        parts.append(incoming)
        if written < size:
            parts.append(RemoteRange(key, written, TO_END))
    elif offset == size:
        # Pure append: reference the whole object rather than an explicit range
        parts.append(RemoteRange(key, 0, TO_END))
        parts.append(incoming)
    elif offset < size:
        parts.append(RemoteRange(key, 0, offset))
        parts.append(incoming)
        if offset + written < size:
            parts.append(RemoteRange(key, offset + written, TO_END))
    else:
        parts.append(RemoteRange(key, 0, TO_END))
        parts.append(LocalBytes.zeros(offset - size))
        parts.append(incoming)

    return parts


class RangeWriter:
    """
    Writes an incoming stream at an offset into a remote object.

    Holds no state between calls beyond the store and scratch directory.
    Concurrent writers to the same key may lose updates: each plan is built
    from the size observed before its own write.
    """

    def __init__(self, store: ObjectStore, *, scratch_dir: Optional[str] = None) -> None:
        self._store = store
        self._scratch_dir = scratch_dir

    def write(self, existing: ExistingObject, offset: int, reader: Union[BinaryIO, Iterable[bytes]]) -> int:
        """
        Write reader's bytes at offset into the object described by existing.

        Args:
            existing: Snapshot of the target object (key, size, exists)
            offset: Byte offset of the write
            reader: File-like object with read(), or an iterable of byte chunks

        Returns:
            Number of bytes consumed from reader

        Raises:
            InvalidOffsetError: If offset is negative
            KodoError: If the upload or compose request fails
        """
        if offset < 0:
            raise InvalidOffsetError(existing.key, offset)

        # Scratch file is removed when the block exits, on success or error
        with tempfile.NamedTemporaryFile(prefix=SCRATCH_PREFIX, dir=self._scratch_dir) as scratch:
            written = _spill(reader, scratch)

            if not existing.exists:
                logger.debug(f"Writing whole object {existing.key} ({written} bytes)")
                self._store.put_file(existing.key, scratch.name)
                return written

            parts = plan_parts(existing, offset, scratch, written)
            logger.debug(
                f"Composing {existing.key} from {len(parts)} parts: offset={offset}, "
                f"written={written}, existing_size={existing.size}"
            )
            scratch.seek(0)
            self._store.put_parts(existing.key, parts)

        return written


def _spill(reader: Union[BinaryIO, Iterable[bytes]], out: BinaryIO) -> int:
    """Copy reader into out, sync it to disk, rewind, and return the byte count."""
    written = 0
    if hasattr(reader, "read"):
        while True:
            chunk = reader.read(CHUNK_SIZE)
            if not chunk:
                break
            out.write(chunk)
            written += len(chunk)
    else:
        for chunk in reader:
            out.write(chunk)
            written += len(chunk)

    out.flush()
    os.fsync(out.fileno())
    out.seek(0)
    return written
