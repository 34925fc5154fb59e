"""Unit tests for the read-only bolt file reader."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import CorruptRecordError, RevscopeStoreError
from store.bolt_file import open_database
from tests.bolt_fixtures import write_bolt_file


def _entries(count: int) -> list[tuple[bytes, bytes]]:
    return [(f"k{index:04d}".encode(), f"v{index}".encode()) for index in range(count)]


def test_bucket_items_are_returned_in_key_order(tmp_path: Path) -> None:
    """Leaf entries should come back sorted by key."""
    path = write_bolt_file(tmp_path / "db", {b"key": [(b"b", b"2"), (b"a", b"1")]})

    with open_database(path) as database:
        items = list(database.bucket(b"key").items())

    assert items == [(b"a", b"1"), (b"b", b"2")]


def test_branch_pages_are_traversed_in_order(tmp_path: Path) -> None:
    """Multi-level trees should yield every entry exactly once, in order."""
    entries = _entries(300)
    path = write_bolt_file(tmp_path / "db", {b"key": entries}, fanout=8)

    with open_database(path) as database:
        items = list(database.bucket(b"key").items())

    assert items == entries


def test_overflow_values_are_read_whole(tmp_path: Path) -> None:
    """Values larger than a page should be read across overflow pages."""
    large_value = bytes(range(256)) * 40
    path = write_bolt_file(tmp_path / "db", {b"key": [(b"big", large_value), (b"small", b"x")]})

    with open_database(path) as database:
        items = dict(database.bucket(b"key").items())

    assert items[b"big"] == large_value and items[b"small"] == b"x"


def test_inline_buckets_are_readable(tmp_path: Path) -> None:
    """Buckets stored inline in their parent leaf should be readable."""
    path = write_bolt_file(
        tmp_path / "db",
        {b"key": _entries(3), b"meta": [(b"consistent_index", b"\x01")]},
        inline_buckets=[b"meta"],
    )

    with open_database(path) as database:
        meta_items = list(database.bucket(b"meta").items())

    assert meta_items == [(b"consistent_index", b"\x01")]


def test_missing_bucket_returns_none(tmp_path: Path) -> None:
    """Looking up an absent bucket should return None."""
    path = write_bolt_file(tmp_path / "db", {b"meta": []})

    with open_database(path) as database:
        bucket = database.bucket(b"key")

    assert bucket is None


def test_open_database_rejects_missing_file(tmp_path: Path) -> None:
    """Opening a nonexistent path should raise a store error."""
    with pytest.raises(RevscopeStoreError):
        with open_database(tmp_path / "missing.db"):
            pass


def test_open_database_rejects_non_bolt_file(tmp_path: Path) -> None:
    """A file without valid meta pages should raise a store error."""
    path = tmp_path / "db"
    path.write_bytes(b"not a database" * 1024)

    with pytest.raises(RevscopeStoreError):
        with open_database(path):
            pass


def test_newest_valid_meta_page_wins(tmp_path: Path) -> None:
    """A damaged newer meta page should fall back to the older one."""
    path = write_bolt_file(tmp_path / "db", {b"key": _entries(2)})
    contents = bytearray(path.read_bytes())
    contents[4096 + 16] ^= 0xFF
    path.write_bytes(bytes(contents))

    with open_database(path) as database:
        items = list(database.bucket(b"key").items())

    assert database.txid == 1 and len(items) == 2


def test_out_of_range_page_is_corrupt(tmp_path: Path) -> None:
    """A bucket pointing past the end of the file should be corrupt."""
    path = write_bolt_file(tmp_path / "db", {b"key": _entries(2)})
    truncated = path.read_bytes()[: 4096 * 3]
    path.write_bytes(truncated)

    with pytest.raises(CorruptRecordError):
        with open_database(path) as database:
            database.bucket(b"key")
