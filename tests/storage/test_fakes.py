"""
Tests for the fake KODO store.

These tests verify that the fake implements the ObjectStore protocol and
reports the same error codes the real services do, so driver tests built on
it stay meaningful.
"""
from __future__ import annotations

import io

import pytest

from kodo_driver.errors import KEY_NOT_EXISTS, KodoError
from kodo_driver.storage.base import ObjectStore
from kodo_driver.storage.parts import LocalBytes, RemoteRange
from tests.storage.fakes import FakeKodoStore


class TestFakeKodoStore:
    """Test FakeKodoStore implementation."""

    def test_implements_protocol(self) -> None:
        assert isinstance(FakeKodoStore(), ObjectStore)

    def test_put_stat_open_roundtrip(self) -> None:
        store = FakeKodoStore()
        store.put("docker/a", io.BytesIO(b"hello world"), 5)

        info = store.stat("docker/a")
        assert info.size == 5
        assert info.put_time > 0
        assert store.open("docker/a", 1).read() == b"ello"

    def test_missing_key_errors(self) -> None:
        store = FakeKodoStore()

        for call in (lambda: store.stat("x"), lambda: store.delete("x"), lambda: store.move("x", "y")):
            with pytest.raises(KodoError) as exc_info:
                call()
            assert exc_info.value.code == KEY_NOT_EXISTS

        with pytest.raises(KodoError) as exc_info:
            store.open("x")
        assert exc_info.value.code == 404

    def test_move_onto_existing_key_refused(self) -> None:
        store = FakeKodoStore()
        store.seed("a", b"1")
        store.seed("b", b"2")

        with pytest.raises(KodoError) as exc_info:
            store.move("a", "b")

        assert exc_info.value.code == 614
        assert store.get("b") == b"2"

    def test_list_rolls_up_common_prefixes(self) -> None:
        store = FakeKodoStore()
        for key in ("d/a", "d/b/1", "d/b/2", "d/c", "e"):
            store.seed(key, b"x")

        page = store.list("d/", delimiter="/")

        assert [item.key for item in page.items] == ["d/a", "d/c"]
        assert page.prefixes == ["d/b/"]
        assert page.marker == ""

    def test_list_pages_with_marker(self) -> None:
        store = FakeKodoStore()
        for key in ("a", "b", "c"):
            store.seed(key, b"x")

        first = store.list("", limit=2)
        second = store.list("", marker=first.marker, limit=2)

        assert [item.key for item in first.items] == ["a", "b"]
        assert first.marker == "b"
        assert [item.key for item in second.items] == ["c"]
        assert second.marker == ""

    def test_put_parts_uses_exclusive_range_ends(self) -> None:
        store = FakeKodoStore()
        store.seed("k", b"0123456789")

        store.put_parts("k", [RemoteRange("k", 0, 3), LocalBytes(io.BytesIO(b"abc"), 3), RemoteRange("k", 6)])

        assert store.get("k") == b"012abc6789"

    def test_put_parts_short_local_part_fails(self) -> None:
        store = FakeKodoStore()
        store.seed("k", b"0123")

        with pytest.raises(KodoError) as exc_info:
            store.put_parts("k", [LocalBytes(io.BytesIO(b"ab"), 5)])

        assert exc_info.value.code == 400
        assert store.get("k") == b"0123"

    def test_compose_error_is_one_shot(self) -> None:
        store = FakeKodoStore()
        store.seed("k", b"0123")
        store.compose_error = KodoError(503, "unavailable")

        with pytest.raises(KodoError):
            store.put_parts("k", [RemoteRange("k", 0)])
        store.put_parts("k", [RemoteRange("k", 0, 2)])

        assert store.get("k") == b"01"
