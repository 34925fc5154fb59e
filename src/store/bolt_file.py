"""Read-only access to bolt database files.

This module maps a bolt B+tree file into memory and exposes its buckets
as ordered key/value iterators. It never writes to the file.
"""

from __future__ import annotations

from contextlib import contextmanager
import mmap
import os
from pathlib import Path
import struct
from typing import Iterator, Union

from core.errors import CorruptRecordError, RevscopeStoreError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

BOLT_MAGIC = 0xED0CDAED
BOLT_VERSION = 2
DEFAULT_PAGE_SIZE = 4096
BRANCH_PAGE_FLAG = 0x01
LEAF_PAGE_FLAG = 0x02
META_PAGE_FLAG = 0x04
FREELIST_PAGE_FLAG = 0x10
BUCKET_LEAF_FLAG = 0x01
MAX_TREE_DEPTH = 64

PAGE_HEADER = struct.Struct("<QHHI")
META_BODY = struct.Struct("<IIIIQQQQQQ")
BRANCH_ELEMENT = struct.Struct("<IIQ")
LEAF_ELEMENT = struct.Struct("<IIII")
BUCKET_HEADER = struct.Struct("<QQ")

# Everything in the meta body except the trailing checksum field.
META_CHECKSUM_SPAN = META_BODY.size - 8

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_UINT64_MASK = 0xFFFFFFFFFFFFFFFF

Buffer = Union[bytes, mmap.mmap]


def fnv1a_64(data: bytes) -> int:
    """Return the 64-bit FNV-1a hash used for meta page checksums."""
    value = _FNV64_OFFSET
    for byte in data:
        value ^= byte
        value = (value * _FNV64_PRIME) & _UINT64_MASK
    return value


class BoltBucket:
    """Ordered view over one bucket's B+tree."""

    def __init__(
        self,
        database: "BoltDatabase",
        name: bytes,
        root_page_id: int,
        inline_page: bytes | None = None,
    ) -> None:
        self._database = database
        self.name = name
        self._root_page_id = root_page_id
        self._inline_page = inline_page

    def items(self) -> Iterator[tuple[bytes, bytes | None]]:
        """Yield ``(key, value)`` pairs in ascending key order.

        Nested buckets are yielded with a ``None`` value.

        Raises:
            CorruptRecordError: If a page on the path cannot be decoded.
        """
        for key, value, flags in self._database.iter_tree(
            self._root_page_id, self._inline_page
        ):
            yield key, None if flags & BUCKET_LEAF_FLAG else value

    def bucket(self, name: bytes) -> "BoltBucket | None":
        """Return a nested bucket by name, or ``None`` when absent."""
        for key, value, flags in self._database.iter_tree(
            self._root_page_id, self._inline_page
        ):
            if key == name and flags & BUCKET_LEAF_FLAG:
                return self._database.bucket_from_header(name, value)
        return None


class BoltDatabase:
    """Memory-mapped bolt file opened through :func:`open_database`."""

    def __init__(self, buffer: Buffer, path: Path) -> None:
        self._buffer = buffer
        self.path = path
        meta = _select_meta(buffer)
        self.page_size: int = meta["page_size"]
        self.txid: int = meta["txid"]
        self._root_page_id: int = meta["root"]

    def bucket(self, name: bytes) -> BoltBucket | None:
        """Return a top-level bucket by name, or ``None`` when absent."""
        root = BoltBucket(self, b"", self._root_page_id)
        return root.bucket(name)

    def bucket_from_header(self, name: bytes, header: bytes) -> BoltBucket:
        """Build a bucket from its leaf value (header plus optional inline page)."""
        if len(header) < BUCKET_HEADER.size:
            raise CorruptRecordError(f"bucket {name!r} header is {len(header)} bytes")
        root_page_id, _sequence = BUCKET_HEADER.unpack_from(header, 0)
        if root_page_id == 0:
            return BoltBucket(self, name, 0, header[BUCKET_HEADER.size :])
        return BoltBucket(self, name, root_page_id)

    def iter_tree(
        self,
        root_page_id: int,
        inline_page: bytes | None = None,
    ) -> Iterator[tuple[bytes, bytes, int]]:
        """Yield ``(key, value, flags)`` leaf elements of a tree in order."""
        if inline_page is not None:
            yield from self._iter_page(inline_page, 0, 0)
            return
        yield from self._iter_page(self._buffer, self._page_offset(root_page_id), 0)

    def _page_offset(self, page_id: int) -> int:
        offset = page_id * self.page_size
        if page_id < 2 or offset + PAGE_HEADER.size > len(self._buffer):
            raise CorruptRecordError(
                f"page {page_id} is outside the {len(self._buffer)}-byte file {self.path}"
            )
        return offset

    def _iter_page(
        self, buffer: Buffer, base: int, depth: int
    ) -> Iterator[tuple[bytes, bytes, int]]:
        if depth > MAX_TREE_DEPTH:
            raise CorruptRecordError(f"page tree deeper than {MAX_TREE_DEPTH} levels")
        if base + PAGE_HEADER.size > len(buffer):
            raise CorruptRecordError(f"truncated page header at offset {base}")
        page_id, flags, count, _overflow = PAGE_HEADER.unpack_from(buffer, base)
        elements = base + PAGE_HEADER.size
        if elements + count * LEAF_ELEMENT.size > len(buffer):
            raise CorruptRecordError(f"page {page_id} element table exceeds page data")
        if flags & LEAF_PAGE_FLAG:
            for index in range(count):
                element = elements + index * LEAF_ELEMENT.size
                element_flags, pos, key_size, value_size = LEAF_ELEMENT.unpack_from(
                    buffer, element
                )
                key_start = element + pos
                value_start = key_start + key_size
                value_end = value_start + value_size
                if value_end > len(buffer):
                    raise CorruptRecordError(
                        f"page {page_id} element {index} points past the end of the page"
                    )
                yield buffer[key_start:value_start], buffer[value_start:value_end], element_flags
        elif flags & BRANCH_PAGE_FLAG:
            for index in range(count):
                element = elements + index * BRANCH_ELEMENT.size
                _pos, _key_size, child_page_id = BRANCH_ELEMENT.unpack_from(buffer, element)
                yield from self._iter_page(
                    self._buffer, self._page_offset(child_page_id), depth + 1
                )
        else:
            raise CorruptRecordError(
                f"page {page_id} has flags 0x{flags:02x}, expected a branch or leaf page"
            )


@contextmanager
def open_database(path: str | Path) -> Iterator[BoltDatabase]:
    """Open a bolt file read-only for the duration of a ``with`` block.

    Args:
        path: Database file path.

    Yields:
        Database handle; the mapping and file are closed on exit.

    Raises:
        RevscopeStoreError: If the file is missing or not a bolt database.
    """
    database_path = Path(path).expanduser()
    try:
        handle = database_path.open("rb")
    except OSError as error:
        raise RevscopeStoreError(
            f"Failed to open database file {database_path}: {error}. "
            "Check the path and read permissions."
        ) from error
    with handle:
        size = os.fstat(handle.fileno()).st_size
        if size < PAGE_HEADER.size + META_BODY.size:
            raise RevscopeStoreError(
                f"Database file {database_path} is {size} bytes, too small to be a bolt file."
            )
        with mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ) as mapped:
            database = BoltDatabase(mapped, database_path)
            _LOGGER.debug(
                "database_opened",
                path=str(database_path),
                page_size=database.page_size,
                txid=database.txid,
            )
            yield database


def _select_meta(buffer: Buffer) -> dict[str, int]:
    """Pick the valid meta page with the highest transaction id.

    Raises:
        RevscopeStoreError: If neither meta page validates.
    """
    first = _read_meta(buffer, 0)
    second_offset = first["page_size"] if first else DEFAULT_PAGE_SIZE
    second = _read_meta(buffer, second_offset)
    candidates = [meta for meta in (first, second) if meta is not None]
    if not candidates:
        raise RevscopeStoreError(
            "Database file has no valid meta page: bad magic, version, or checksum. "
            "Provide an uncorrupted bolt database file."
        )
    return max(candidates, key=lambda meta: meta["txid"])


def _read_meta(buffer: Buffer, offset: int) -> dict[str, int] | None:
    body = offset + PAGE_HEADER.size
    if body + META_BODY.size > len(buffer):
        return None
    _page_id, flags, _count, _overflow = PAGE_HEADER.unpack_from(buffer, offset)
    (
        magic,
        version,
        page_size,
        _flags,
        root,
        _sequence,
        _freelist,
        _high_water,
        txid,
        checksum,
    ) = META_BODY.unpack_from(buffer, body)
    if not flags & META_PAGE_FLAG or magic != BOLT_MAGIC or version != BOLT_VERSION:
        return None
    if page_size < PAGE_HEADER.size + META_BODY.size:
        return None
    if fnv1a_64(bytes(buffer[body : body + META_CHECKSUM_SPAN])) != checksum:
        return None
    return {"page_size": page_size, "root": root, "txid": txid}
