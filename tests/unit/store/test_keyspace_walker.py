"""Unit tests for the ordered keyspace walk."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import CorruptRecordError, MissingBucketError
from core.types import KeyValue, RevisionKey
from store.bolt_file import open_database
from store.keyspace_walker import walk
from tests.bolt_fixtures import StoreHistory, registry_history, write_bolt_file


def _collect(path: Path, **options) -> list[tuple[RevisionKey, KeyValue | None]]:
    visited: list[tuple[RevisionKey, KeyValue | None]] = []

    def visitor(revision: RevisionKey, key_value: KeyValue | None) -> bool:
        visited.append((revision, key_value))
        return False

    with open_database(path) as database:
        walk(database, visitor, **options)
    return visited


def test_walk_visits_records_in_revision_order(registry_db: Path) -> None:
    """Records should arrive in ascending (main, sub) order."""
    revisions = [revision for revision, _ in _collect(registry_db)]

    assert revisions == sorted(revisions) and len(revisions) == len(registry_history().records)


def test_walk_includes_tombstones_with_their_key(registry_db: Path) -> None:
    """Tombstone records should be visited and name the deleted key."""
    tombstones = [
        key_value for revision, key_value in _collect(registry_db) if revision.tombstone
    ]

    assert [key_value.key for key_value in tombstones] == [b"/registry/pods/default/pi-old"]


def test_walk_stops_when_visitor_requests_it(registry_db: Path) -> None:
    """Returning True should end the walk without further visits."""
    visited: list[RevisionKey] = []

    def visitor(revision: RevisionKey, key_value: KeyValue | None) -> bool:
        visited.append(revision)
        return len(visited) == 2

    with open_database(registry_db) as database:
        walk(database, visitor)

    assert len(visited) == 2


def test_walk_propagates_visitor_errors(registry_db: Path) -> None:
    """An exception raised by the visitor should abort the walk."""

    def visitor(revision: RevisionKey, key_value: KeyValue | None) -> bool:
        raise ValueError("stop here")

    with pytest.raises(ValueError, match="stop here"):
        with open_database(registry_db) as database:
            walk(database, visitor)


def test_walk_raises_for_missing_key_bucket(tmp_path: Path) -> None:
    """A file without the key bucket should fail with its name."""
    path = write_bolt_file(tmp_path / "db", {b"meta": []})

    with pytest.raises(MissingBucketError) as error_info:
        _collect(path)

    assert error_info.value.name == "key" and 'missing "key" bucket' in str(error_info.value)


def test_walk_raises_for_malformed_revision_key(tmp_path: Path) -> None:
    """A record key of the wrong width should be corrupt."""
    path = write_bolt_file(tmp_path / "db", {b"key": [(b"short", b"")]})

    with pytest.raises(CorruptRecordError):
        _collect(path)


def test_walk_raises_for_malformed_value(tmp_path: Path) -> None:
    """A record value that is not a KeyValue message should be corrupt."""
    raw_key = (2).to_bytes(8, "big") + (0).to_bytes(8, "big")
    path = write_bolt_file(tmp_path / "db", {b"key": [(raw_key, b"\x0a\x7fabc")]})

    with pytest.raises(CorruptRecordError):
        _collect(path)


def test_walk_reads_etcd_key_layout(tmp_path: Path) -> None:
    """Files written with the etcd layout should decode with that layout."""
    history = StoreHistory(key_layout="etcd")
    history.put("/registry/a", b"{}")
    history.delete("/registry/a")
    path = history.write(tmp_path / "db")

    visited = _collect(path, key_layout="etcd")

    assert [revision.tombstone for revision, _ in visited] == [False, True]
