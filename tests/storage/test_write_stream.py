"""
Tests for write_stream range-write emulation.

Runs the driver against FakeKodoStore, which composes parts the way the
upload service does, and checks the resulting object bytes.
"""
from __future__ import annotations

import io

import pytest

from kodo_driver.errors import InvalidOffsetError, InvalidPathError, KodoError
from kodo_driver.storage.parts import ExistingObject, RangeWriter

PATH = "/docker/registry/v2/repositories/app/_uploads/u1/data"
KEY = PATH.lstrip("/")


def _expected(prior: bytes, offset: int, incoming: bytes) -> bytes:
    """Reference semantics of writing incoming at offset into prior."""
    if offset > len(prior):
        prior = prior + bytes(offset - len(prior))
    head = prior[:offset]
    tail = prior[offset + len(incoming):]
    return head + incoming + tail


class TestWriteStreamScenarios:
    """Concrete scenarios from the range-write contract."""

    def test_overwrite_first_byte(self, driver, store):
        store.seed(KEY, b"hello world")

        written = driver.write_stream(PATH, 0, io.BytesIO(b"X"))

        assert written == 1
        assert store.get(KEY) == b"Xello world"

    def test_append(self, driver, store):
        store.seed(KEY, b"hello")

        written = driver.write_stream(PATH, 5, io.BytesIO(b" world"))

        assert written == 6
        assert store.get(KEY) == b"hello world"

    def test_write_past_end_fills_zeros(self, driver, store):
        store.seed(KEY, b"abc")

        written = driver.write_stream(PATH, 5, io.BytesIO(b"Z"))

        assert written == 1
        assert store.get(KEY) == b"abc\0\0Z"
        assert len(store.get(KEY)) == 6

    def test_first_write_uploads_whole_object(self, driver, store):
        """Without an existing object the content is stored as-is, whatever the offset."""
        written = driver.write_stream(PATH, 42, io.BytesIO(b"first chunk"))

        assert written == 11
        assert store.get(KEY) == b"first chunk"
        assert store.put_file_calls == [KEY]
        assert store.put_parts_calls == []


class TestWriteStreamProperties:
    """Resulting bytes match reference semantics for every offset case."""

    PRIOR = b"0123456789"

    @pytest.mark.parametrize("offset,incoming", [
        (0, b"ab"),          # offset 0, shorter: tail kept
        (0, b"abcdefghij"),  # offset 0, same length
        (0, b"abcdefghijkl"),  # offset 0, longer
        (10, b"xyz"),        # pure append
        (3, b"ab"),          # middle, tail kept
        (3, b"abcdefg"),     # middle, ends exactly at old end
        (8, b"abcdef"),      # middle, extends past old end
        (13, b"xyz"),        # sparse write past the end
        (4, b""),            # empty write in the middle
    ])
    def test_result_matches_reference(self, driver, store, offset, incoming):
        store.seed(KEY, self.PRIOR)

        written = driver.write_stream(PATH, offset, io.BytesIO(incoming))

        assert written == len(incoming)
        assert store.get(KEY) == _expected(self.PRIOR, offset, incoming)

    def test_offset_zero_preserves_unchanged_tail(self, driver, store):
        store.seed(KEY, self.PRIOR)

        driver.write_stream(PATH, 0, io.BytesIO(b"ab"))

        result = store.get(KEY)
        assert result[:2] == b"ab"
        assert result[2:] == self.PRIOR[2:]

    def test_sparse_write_length(self, driver, store):
        store.seed(KEY, self.PRIOR)

        driver.write_stream(PATH, 15, io.BytesIO(b"xy"))

        result = store.get(KEY)
        assert len(result) == 17
        assert result[10:15] == bytes(5)

    def test_single_compose_request(self, driver, store):
        store.seed(KEY, self.PRIOR)

        driver.write_stream(PATH, 3, io.BytesIO(b"ab"))

        assert len(store.put_parts_calls) == 1
        key, parts = store.put_parts_calls[0]
        assert key == KEY
        assert len(parts) == 3

    def test_iterable_reader(self, driver, store):
        """Readers may also be iterables of byte chunks."""
        store.seed(KEY, b"hello")

        written = driver.write_stream(PATH, 5, iter([b" wo", b"rld"]))

        assert written == 6
        assert store.get(KEY) == b"hello world"

    def test_large_stream_spans_multiple_chunks(self, driver, store):
        payload = bytes(range(256)) * 8192  # 2 MiB, more than one spill chunk
        store.seed(KEY, b"head")

        written = driver.write_stream(PATH, 4, io.BytesIO(payload))

        assert written == len(payload)
        assert store.get(KEY) == b"head" + payload


class TestWriteStreamErrors:
    """Validation, error propagation and scratch cleanup."""

    def test_negative_offset_raises(self, driver, store):
        store.seed(KEY, b"abc")

        with pytest.raises(InvalidOffsetError):
            driver.write_stream(PATH, -1, io.BytesIO(b"x"))

    def test_invalid_path_raises(self, driver):
        with pytest.raises(InvalidPathError):
            driver.write_stream("relative/path", 0, io.BytesIO(b"x"))

    def test_compose_failure_propagates_unchanged(self, driver, store, scratch_dir):
        store.seed(KEY, b"abc")
        failure = KodoError(612, "no such file or directory")
        store.compose_error = failure

        with pytest.raises(KodoError) as exc_info:
            driver.write_stream(PATH, 1, io.BytesIO(b"x"))

        assert exc_info.value is failure
        assert store.get(KEY) == b"abc"
        assert list(scratch_dir.iterdir()) == []

    def test_scratch_removed_after_success(self, driver, store, scratch_dir):
        store.seed(KEY, b"abc")

        driver.write_stream(PATH, 3, io.BytesIO(b"def"))
        driver.write_stream("/docker/new", 0, io.BytesIO(b"new"))

        assert list(scratch_dir.iterdir()) == []

    def test_scratch_removed_when_reader_fails(self, driver, store, scratch_dir):
        store.seed(KEY, b"abc")

        class FailingReader:
            def __init__(self):
                self.calls = 0

            def read(self, size=-1):
                self.calls += 1
                if self.calls > 1:
                    raise OSError("client disconnected")
                return b"partial"

        with pytest.raises(OSError, match="client disconnected"):
            driver.write_stream(PATH, 1, FailingReader())

        assert store.get(KEY) == b"abc"
        assert store.put_parts_calls == []
        assert list(scratch_dir.iterdir()) == []

    def test_scratch_removed_when_whole_upload_fails(self, driver, store, scratch_dir, monkeypatch):
        def failing_put_file(key, filename):
            raise KodoError(401, "bad token")

        monkeypatch.setattr(store, "put_file", failing_put_file)

        with pytest.raises(KodoError, match="bad token"):
            driver.write_stream("/docker/new", 0, io.BytesIO(b"new"))

        assert store.keys() == []
        assert list(scratch_dir.iterdir()) == []

    def test_write_far_past_end_streams_gap(self, driver, store):
        store.seed(KEY, b"abc")
        gap = 3 * 1024 * 1024 + 7

        driver.write_stream(PATH, 3 + gap, io.BytesIO(b"z"))

        result = store.get(KEY)
        assert len(result) == 3 + gap + 1
        assert result[:3] == b"abc"
        assert result[-1:] == b"z"
        assert result[3:-1] == bytes(gap)

    def test_stat_failure_other_than_missing_propagates(self, driver, store, monkeypatch):
        def broken_stat(key):
            raise KodoError(401, "bad token")

        monkeypatch.setattr(store, "stat", broken_stat)

        with pytest.raises(KodoError, match="bad token"):
            driver.write_stream(PATH, 0, io.BytesIO(b"x"))


class TestRangeWriter:
    """RangeWriter used directly with an explicit snapshot."""

    def test_stale_snapshot_of_deleted_object_surfaces_error(self, store, scratch_dir):
        """Compose fails verbatim when a referenced range no longer exists."""
        writer = RangeWriter(store, scratch_dir=str(scratch_dir))
        stale = ExistingObject(key=KEY, size=5, exists=True)

        with pytest.raises(KodoError) as exc_info:
            writer.write(stale, 5, io.BytesIO(b"more"))

        assert exc_info.value.code == 612
        assert list(scratch_dir.iterdir()) == []

    def test_negative_offset_rejected_before_reading(self, store, scratch_dir):
        writer = RangeWriter(store, scratch_dir=str(scratch_dir))
        reader = io.BytesIO(b"untouched")

        with pytest.raises(InvalidOffsetError):
            writer.write(ExistingObject(key=KEY), -5, reader)

        assert reader.tell() == 0
