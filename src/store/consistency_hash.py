"""Snapshot consistency hashing.

This module digests the logical content of a database file at a revision.
Equal logical content yields equal digests, whatever the physical page
layout, compaction history, or fragmentation of the file.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
import struct

from core.constants import DEFAULT_KEY_LAYOUT, HASH_ALGORITHM, META_BUCKET_NAME
from core.errors import MissingBucketError
from core.logging_config import get_logger
from core.types import Checksum, KeyValue
from store.bolt_file import open_database
from store.snapshot_reconstructor import reconstruct_keyspace

_LOGGER = get_logger(__name__)

_LENGTH = struct.Struct(">Q")
_REVISIONS = struct.Struct(">qqq")


def hash_by_revision(
    database_path: str | Path,
    at_revision: int = 0,
    key_layout: str = DEFAULT_KEY_LAYOUT,
) -> Checksum:
    """Hash the keyspace alive at a revision.

    Args:
        database_path: Database file path.
        at_revision: Target revision, or ``0`` for the latest.
        key_layout: On-disk revision key layout.

    Returns:
        Checksum with the digest, the revision it covers, and key count.

    Raises:
        MissingBucketError: If the ``meta`` or ``key`` bucket is absent.
        CorruptRecordError: If a record cannot be decoded.
    """
    with open_database(database_path) as database:
        if database.bucket(META_BUCKET_NAME) is None:
            raise MissingBucketError(META_BUCKET_NAME.decode())
        keyspace = reconstruct_keyspace(database, at_revision, key_layout)
    hasher = hashlib.new(HASH_ALGORITHM)
    for key in keyspace.sorted_keys():
        hasher.update(hash_key_value(keyspace.live[key].key_value))
    checksum = Checksum(
        hash=hasher.hexdigest(),
        revision=at_revision if at_revision > 0 else keyspace.latest_revision,
        key_count=len(keyspace.live),
    )
    _LOGGER.info(
        "snapshot_hashed",
        path=str(database_path),
        revision=checksum.revision,
        key_count=checksum.key_count,
    )
    return checksum


def hash_key_value(key_value: KeyValue) -> bytes:
    """Digest one live key tuple in its canonical serialization.

    The serialization is the length-prefixed key, the length-prefixed
    value, then version, mod revision, and create revision as signed
    big-endian 64-bit integers.
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(_LENGTH.pack(len(key_value.key)))
    hasher.update(key_value.key)
    hasher.update(_LENGTH.pack(len(key_value.value)))
    hasher.update(key_value.value)
    hasher.update(
        _REVISIONS.pack(key_value.version, key_value.mod_revision, key_value.create_revision)
    )
    return hasher.digest()
