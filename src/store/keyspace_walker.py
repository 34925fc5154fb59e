"""Ordered walk over the revision-keyed record bucket.

This module decodes every record of the ``key`` bucket in on-disk order
and hands it to a visitor, which may stop the walk early.
"""

from __future__ import annotations

from typing import Callable

from core.constants import DEFAULT_KEY_LAYOUT, KEY_BUCKET_NAME
from core.errors import CorruptRecordError, MissingBucketError
from core.logging_config import get_logger
from core.types import KeyValue, RevisionKey
from store.bolt_file import BoltDatabase
from store.record_codec import decode_key_value
from store.revision_codec import decode_revision_key

_LOGGER = get_logger(__name__)

RecordVisitor = Callable[[RevisionKey, "KeyValue | None"], bool]


def walk(
    database: BoltDatabase,
    visitor: RecordVisitor,
    key_layout: str = DEFAULT_KEY_LAYOUT,
) -> None:
    """Visit every record of the ``key`` bucket in ascending revision order.

    Tombstones are visited too. Their ``KeyValue`` carries only the logical
    key, and is ``None`` when the tombstone value is empty.

    Args:
        database: Open database handle.
        visitor: Called per record; returning ``True`` ends the walk
            without reading the remaining records. Exceptions it raises
            propagate to the caller.
        key_layout: On-disk revision key layout.

    Raises:
        MissingBucketError: If the ``key`` bucket is absent.
        CorruptRecordError: If a record key or value cannot be decoded.
    """
    bucket = database.bucket(KEY_BUCKET_NAME)
    if bucket is None:
        raise MissingBucketError(KEY_BUCKET_NAME.decode())
    visited = 0
    stopped = False
    for raw_key, raw_value in bucket.items():
        revision = decode_revision_key(raw_key, key_layout)
        key_value = _decode_record_value(revision, raw_value)
        visited += 1
        if visitor(revision, key_value):
            stopped = True
            break
    _LOGGER.debug(
        "keyspace_walk_finished",
        path=str(database.path),
        records_visited=visited,
        stopped_early=stopped,
    )


def _decode_record_value(revision: RevisionKey, raw_value: bytes | None) -> KeyValue | None:
    """Decode one record value, validating it against its revision key.

    Raises:
        CorruptRecordError: If the value is a nested bucket, undecodable,
            or a live record without a logical key.
    """
    if raw_value is None:
        raise CorruptRecordError(
            f"revision {revision.main}/{revision.sub} is a nested bucket, expected a record"
        )
    if revision.tombstone and not raw_value:
        return None
    key_value = decode_key_value(raw_value)
    if not revision.tombstone and not key_value.key:
        raise CorruptRecordError(
            f"live record at revision {revision.main}/{revision.sub} has no key"
        )
    return key_value
