"""Revision key encoding.

Record keys in the ``key`` bucket are fixed-width big-endian revisions,
optionally followed by a tombstone marker byte. Two layouts exist: the
compact one (16/17 bytes) and the upstream etcd one, which puts a ``_``
separator between the two halves (17/18 bytes).
"""

from __future__ import annotations

import struct

from core.constants import (
    ETCD_REVISION_SEPARATOR,
    KEY_LAYOUT_COMPACT,
    KEY_LAYOUT_ETCD,
    TOMBSTONE_MARKER,
)
from core.errors import CorruptRecordError
from core.types import RevisionKey

_COMPACT = struct.Struct(">qq")
_ETCD = struct.Struct(">qcq")


def revision_key_widths(layout: str = KEY_LAYOUT_COMPACT) -> tuple[int, int]:
    """Return the ``(live, tombstone)`` byte widths for a key layout."""
    live_width = _layout_struct(layout).size
    return live_width, live_width + len(TOMBSTONE_MARKER)


def decode_revision_key(raw: bytes, layout: str = KEY_LAYOUT_COMPACT) -> RevisionKey:
    """Decode an on-disk record key.

    Args:
        raw: Raw key bytes from the ``key`` bucket.
        layout: Key layout name, ``compact`` or ``etcd``.

    Returns:
        Decoded revision key.

    Raises:
        CorruptRecordError: If the width or separator does not match the layout.
    """
    live_width, tombstone_width = revision_key_widths(layout)
    if len(raw) not in (live_width, tombstone_width):
        raise CorruptRecordError(
            f"revision key {raw.hex()} is {len(raw)} bytes, "
            f"expected {live_width} or {tombstone_width} for the {layout} layout"
        )
    if layout == KEY_LAYOUT_ETCD:
        main, separator, sub = _ETCD.unpack_from(raw, 0)
        if separator != ETCD_REVISION_SEPARATOR:
            raise CorruptRecordError(
                f"revision key {raw.hex()} has separator {separator!r}, expected '_'"
            )
    else:
        main, sub = _COMPACT.unpack_from(raw, 0)
    return RevisionKey(main=main, sub=sub, tombstone=len(raw) == tombstone_width)


def encode_revision_key(revision: RevisionKey, layout: str = KEY_LAYOUT_COMPACT) -> bytes:
    """Encode a revision key into its on-disk form.

    Args:
        revision: Revision to encode.
        layout: Key layout name, ``compact`` or ``etcd``.

    Returns:
        Raw key bytes; ``decode_revision_key`` inverts this exactly.
    """
    layout_struct = _layout_struct(layout)
    if layout == KEY_LAYOUT_ETCD:
        raw = layout_struct.pack(revision.main, ETCD_REVISION_SEPARATOR, revision.sub)
    else:
        raw = layout_struct.pack(revision.main, revision.sub)
    if revision.tombstone:
        raw += TOMBSTONE_MARKER
    return raw


def _layout_struct(layout: str) -> struct.Struct:
    if layout == KEY_LAYOUT_COMPACT:
        return _COMPACT
    if layout == KEY_LAYOUT_ETCD:
        return _ETCD
    raise ValueError(f"Unknown revision key layout '{layout}'")
