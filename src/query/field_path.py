"""Dot-path resolution over decoded documents.

Documents are plain nested dicts, lists, and scalars. A path such as
``.Value.metadata.namespace`` walks mapping keys one segment at a time;
numeric segments index into lists.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from core.errors import InvalidPathError


def split_path(path: str) -> tuple[str, ...]:
    """Split a dot path into segments, ignoring one leading dot.

    Raises:
        InvalidPathError: If the path is empty or has an empty segment.
    """
    stripped = path[1:] if path.startswith(".") else path
    segments = tuple(stripped.split("."))
    if not stripped or any(not segment for segment in segments):
        raise InvalidPathError(path, "empty path segment")
    return segments


def resolve_path(document: Any, path: str) -> Any:
    """Resolve a dot path against a document.

    Args:
        document: Nested dicts, lists, and scalars.
        path: Dot path, e.g. ``.TypeMeta.Kind``.

    Returns:
        The value at the path.

    Raises:
        InvalidPathError: If any segment is missing or not traversable.
    """
    current = document
    for segment in split_path(path):
        if isinstance(current, Mapping):
            if segment not in current:
                raise InvalidPathError(path, f"no field '{segment}'")
            current = current[segment]
        elif isinstance(current, list) and segment.isascii() and segment.isdecimal():
            index = int(segment)
            if index >= len(current):
                raise InvalidPathError(path, f"index {index} out of range")
            current = current[index]
        else:
            raise InvalidPathError(
                path, f"cannot select '{segment}' from {type(current).__name__}"
            )
    return current


def canonical_string(value: Any) -> str:
    """Render a resolved value as the string used for equality checks."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"))
