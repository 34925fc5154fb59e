"""Offline MVCC snapshot reconstruction.

This module folds the revision-ordered record stream of a database file
into the set of logical keys alive at a target revision, then filters
and projects them into key summaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any, Callable, Sequence

from core.constants import DEFAULT_KEY_LAYOUT
from core.errors import CorruptRecordError, InvalidPathError, PayloadDecodeError
from core.logging_config import get_logger
from core.types import (
    PROJECT_EVERYTHING,
    DecodedPayload,
    Filter,
    KeySummary,
    KeySummaryStats,
    KeyValue,
    Projection,
    RevisionKey,
)
from decode.payload_codec import PayloadDecoder
from query.field_path import resolve_path
from query.filter_engine import matches, matches_key
from store.bolt_file import BoltDatabase, open_database
from store.keyspace_walker import walk

_LOGGER = get_logger(__name__)

KeyPredicate = Callable[[bytes], bool]


@dataclass(frozen=True)
class LiveKey:
    """Winning record of a live key plus its history since creation.

    Attributes:
        key_value: Latest applicable put for the key.
        versions: Puts applied since the key was last created.
        all_versions_value_size: Value bytes summed over those puts.
    """

    key_value: KeyValue
    versions: int
    all_versions_value_size: int


@dataclass(frozen=True)
class Keyspace:
    """Logical keyspace reconstructed at one revision.

    Attributes:
        live: Live keys by raw logical key.
        latest_revision: Highest main revision among applied records.
    """

    live: dict[bytes, LiveKey]
    latest_revision: int

    def sorted_keys(self) -> list[bytes]:
        """Return live keys in ascending raw byte order."""
        return sorted(self.live)


def reconstruct_keyspace(
    database: BoltDatabase,
    at_revision: int = 0,
    key_layout: str = DEFAULT_KEY_LAYOUT,
    key_predicate: KeyPredicate | None = None,
) -> Keyspace:
    """Rebuild the keys alive at ``at_revision`` from an open database.

    Every record is decoded, but records newer than ``at_revision`` are
    not applied (``0`` means the latest state). A tombstone removes its
    key; any other record replaces the key's entry, so the last record
    in revision order always wins and its version fields are kept
    verbatim.

    Args:
        database: Open database handle.
        at_revision: Target revision, or ``0`` for the latest.
        key_layout: On-disk revision key layout.
        key_predicate: Optional key-only filter applied while walking.

    Returns:
        Reconstructed keyspace.

    Raises:
        MissingBucketError: If the ``key`` bucket is absent.
        CorruptRecordError: If a record cannot be decoded or attributed.
    """
    live: dict[bytes, LiveKey] = {}
    latest_revision = 0

    def visit(revision: RevisionKey, key_value: KeyValue | None) -> bool:
        nonlocal latest_revision
        if at_revision > 0 and revision.main > at_revision:
            return False
        latest_revision = max(latest_revision, revision.main)
        if key_value is None:
            raise CorruptRecordError(
                f"tombstone at revision {revision.main}/{revision.sub} does not name a key"
            )
        if key_predicate is not None and not key_predicate(key_value.key):
            return False
        if revision.tombstone:
            live.pop(key_value.key, None)
            return False
        previous = live.get(key_value.key)
        value_size = len(key_value.value)
        if previous is None:
            live[key_value.key] = LiveKey(key_value, 1, value_size)
        else:
            live[key_value.key] = LiveKey(
                key_value,
                previous.versions + 1,
                previous.all_versions_value_size + value_size,
            )
        return False

    walk(database, visit, key_layout)
    return Keyspace(live=live, latest_revision=latest_revision)


def list_key_summaries(
    decoder: PayloadDecoder,
    database_path: str | Path,
    filters: Sequence[Filter] | None = None,
    projection: Projection = PROJECT_EVERYTHING,
    at_revision: int = 0,
    key_layout: str = DEFAULT_KEY_LAYOUT,
) -> list[KeySummary]:
    """List summaries of the keys alive at a revision that pass all filters.

    Args:
        decoder: Payload decoder used by field filters and projection.
        database_path: Database file path.
        filters: Conjunction of filters; empty matches every key.
        projection: Which parts of each value to materialize.
        at_revision: Target revision, or ``0`` for the latest.
        key_layout: On-disk revision key layout.

    Returns:
        Summaries in ascending raw key order.

    Raises:
        RevscopeStoreError: If the file cannot be opened.
        MissingBucketError: If the ``key`` bucket is absent.
        CorruptRecordError: If a record cannot be decoded.
    """
    active_filters = list(filters or ())
    with open_database(database_path) as database:
        keyspace = reconstruct_keyspace(
            database,
            at_revision,
            key_layout,
            key_predicate=lambda key: matches_key(active_filters, key),
        )
    summaries: list[KeySummary] = []
    for key in keyspace.sorted_keys():
        view = _SummaryView(decoder, keyspace.live[key])
        if not matches(active_filters, key, lambda: view.document):
            continue
        summaries.append(view.summary(projection))
    _LOGGER.info(
        "key_summaries_listed",
        path=str(database_path),
        at_revision=at_revision,
        live_keys=len(keyspace.live),
        matched_keys=len(summaries),
    )
    return summaries


class _SummaryView:
    """Lazily decoded view of one live key, shared by filters and projection."""

    def __init__(self, decoder: PayloadDecoder, live_key: LiveKey) -> None:
        self._decoder = decoder
        self._key_value = live_key.key_value
        self._stats = KeySummaryStats(
            versions=live_key.versions,
            value_size=len(live_key.key_value.value),
            all_versions_value_size=live_key.all_versions_value_size,
        )

    @cached_property
    def payload(self) -> DecodedPayload | None:
        try:
            return self._decoder.decode(self._key_value.value)
        except PayloadDecodeError as error:
            _LOGGER.debug(
                "payload_decode_failed",
                key=self._key_value.key.decode("utf-8", errors="replace"),
                error=str(error),
            )
            return None

    @cached_property
    def document(self) -> dict[str, Any]:
        """Document addressed by field filters; undecodable payloads omit
        the ``Value`` and ``TypeMeta`` roots."""
        key_value = self._key_value
        document: dict[str, Any] = {
            "Key": key_value.key.decode("utf-8", errors="replace"),
            "Version": key_value.version,
            "ModRevision": key_value.mod_revision,
            "CreateRevision": key_value.create_revision,
            "Lease": key_value.lease,
            "Stats": {
                "Versions": self._stats.versions,
                "ValueSize": self._stats.value_size,
                "AllVersionsValueSize": self._stats.all_versions_value_size,
            },
        }
        if self.payload is not None:
            document["Value"] = self.payload.value
            document["TypeMeta"] = {
                "APIVersion": self.payload.type_meta.api_version,
                "Kind": self.payload.type_meta.kind,
            }
        return document

    def summary(self, projection: Projection) -> KeySummary:
        key_value = self._key_value
        return KeySummary(
            key=key_value.key,
            version=key_value.version,
            mod_revision=key_value.mod_revision,
            create_revision=key_value.create_revision,
            value=self._projected_value(projection),
            stats=self._stats,
        )

    def _projected_value(self, projection: Projection) -> Any:
        if not projection.include_value:
            return None
        if not projection.value_paths:
            return self.payload.value if self.payload is not None else None
        projected: dict[str, Any] = {}
        for path in projection.value_paths:
            try:
                projected[path] = resolve_path(self.document, path)
            except InvalidPathError:
                continue
        return projected
