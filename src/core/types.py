"""Shared typed models.

This module defines immutable data models used by the store, query,
decode, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


@dataclass(frozen=True, order=True)
class RevisionKey:
    """Decoded on-disk record key.

    Ordering compares ``(main, sub)`` first, which matches the order in
    which the store applied the mutations.

    Attributes:
        main: Transaction revision that wrote the record.
        sub: Operation index inside that transaction.
        tombstone: Whether the record marks a deletion.
    """

    main: int
    sub: int
    tombstone: bool = False


@dataclass(frozen=True)
class KeyValue:
    """One historical mutation of a logical key.

    Attributes:
        key: Logical key bytes, e.g. ``/registry/pods/default/web``.
        value: Stored payload bytes.
        create_revision: Revision at which the key was last created.
        mod_revision: Revision of this mutation.
        version: Number of puts since the key was last created.
        lease: Attached lease id, zero when none.
    """

    key: bytes
    value: bytes = b""
    create_revision: int = 0
    mod_revision: int = 0
    version: int = 0
    lease: int = 0


@dataclass(frozen=True)
class TypeMeta:
    """API version and kind of a decoded payload."""

    api_version: str = ""
    kind: str = ""


@dataclass(frozen=True)
class DecodedPayload:
    """Schema-agnostic document produced once per stored value.

    Attributes:
        value: Nested dicts, lists, and scalars decoded from the payload.
        type_meta: Type metadata found in the payload envelope.
        media_type: Detected storage media type.
    """

    value: Any
    type_meta: TypeMeta
    media_type: str


@dataclass(frozen=True)
class KeySummaryStats:
    """Size and history statistics for one surviving key.

    Attributes:
        versions: Puts applied since the key was last created.
        value_size: Byte length of the winning value.
        all_versions_value_size: Byte length summed over those puts.
    """

    versions: int
    value_size: int
    all_versions_value_size: int


@dataclass(frozen=True)
class KeySummary:
    """Materialized state of one logical key at a target revision."""

    key: bytes
    version: int
    mod_revision: int
    create_revision: int
    value: Any = None
    stats: KeySummaryStats | None = None


class FieldOperator(Enum):
    """Comparison operators supported by field constraints."""

    EQUALS = "="


@dataclass(frozen=True)
class FieldConstraint:
    """Single ``<lhs> <op> <rhs>`` constraint against a decoded document."""

    lhs: str
    op: FieldOperator
    rhs: str


@dataclass(frozen=True)
class PrefixFilter:
    """Matches keys whose raw bytes start with ``prefix``."""

    prefix: bytes


@dataclass(frozen=True)
class FieldFilter:
    """Matches keys whose decoded document satisfies ``constraint``."""

    constraint: FieldConstraint


Filter = Union[PrefixFilter, FieldFilter]


@dataclass(frozen=True)
class Projection:
    """Selects which parts of a key summary value are materialized.

    Attributes:
        include_value: Decode and emit the payload value.
        value_paths: Optional dot paths; when set, the value is narrowed to
            a mapping of each path to its resolved value.
    """

    include_value: bool = True
    value_paths: tuple[str, ...] = field(default_factory=tuple)


PROJECT_EVERYTHING = Projection()
PROJECT_KEYS_ONLY = Projection(include_value=False)


@dataclass(frozen=True)
class Checksum:
    """Consistency digest of a reconstructed snapshot.

    Attributes:
        hash: Hex digest over all live key tuples.
        revision: Revision the snapshot was reconstructed at.
        key_count: Number of live keys folded into the digest.
    """

    hash: str
    revision: int
    key_count: int
