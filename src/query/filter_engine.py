"""Filter parsing and evaluation.

This module turns ``<dotpath>=<literal>`` expressions into filters and
evaluates filter sets against record keys and decoded documents. A
filter set is a conjunction that stops at the first non-match.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Sequence, assert_never

from core.errors import InvalidFilterSpecError, InvalidPathError
from core.types import (
    FieldConstraint,
    FieldFilter,
    FieldOperator,
    Filter,
    PrefixFilter,
)
from query.field_path import canonical_string, resolve_path

DocumentLoader = Callable[[], Any]

_TRIM_CHARS = " \t\n\r\f\v"


def parse_filters(raw: str) -> list[Filter]:
    """Parse a comma-separated list of ``<dotpath>=<literal>`` clauses.

    Args:
        raw: Filter expression from the outer layer.

    Returns:
        Field filters in input order; empty when ``raw`` is blank.

    Raises:
        InvalidFilterSpecError: If a clause does not contain exactly one
            ``=`` or its left side is empty.
    """
    if not raw.strip(_TRIM_CHARS):
        return []
    filters: list[Filter] = []
    for clause in raw.split(","):
        parts = clause.split("=")
        if len(parts) != 2:
            raise InvalidFilterSpecError(clause, "expected exactly one '='")
        lhs = parts[0].strip(_TRIM_CHARS)
        rhs = parts[1].strip(_TRIM_CHARS)
        if not lhs:
            raise InvalidFilterSpecError(clause, "missing field path before '='")
        filters.append(build_filter(FieldConstraint(lhs=lhs, op=FieldOperator.EQUALS, rhs=rhs)))
    return filters


def build_filter(constraint: FieldConstraint) -> FieldFilter:
    """Wrap a field constraint into a filter."""
    return FieldFilter(constraint=constraint)


def new_prefix_filter(prefix: str | bytes) -> PrefixFilter:
    """Build a key prefix filter from text or raw bytes."""
    if isinstance(prefix, str):
        prefix = prefix.encode("utf-8")
    return PrefixFilter(prefix=prefix)


def matches_key(filters: Iterable[Filter], key: bytes) -> bool:
    """Evaluate only the key-level filters of a set against a raw key."""
    return all(
        key.startswith(filter_.prefix)
        for filter_ in filters
        if isinstance(filter_, PrefixFilter)
    )


def matches(filters: Sequence[Filter], key: bytes, load_document: DocumentLoader) -> bool:
    """Evaluate a filter set as a short-circuiting conjunction.

    Args:
        filters: Filters to apply.
        key: Raw logical key.
        load_document: Returns the key's decoded document; only called
            when a field filter is reached.

    Returns:
        ``True`` when every filter matches.
    """
    for filter_ in filters:
        if not _matches_one(filter_, key, load_document):
            return False
    return True


def _matches_one(filter_: Filter, key: bytes, load_document: DocumentLoader) -> bool:
    match filter_:
        case PrefixFilter(prefix=prefix):
            return key.startswith(prefix)
        case FieldFilter(constraint=constraint):
            return _matches_constraint(constraint, load_document())
        case _:
            assert_never(filter_)


def _matches_constraint(constraint: FieldConstraint, document: Any) -> bool:
    """Compare one constraint; unresolvable paths are non-matches."""
    try:
        resolved = resolve_path(document, constraint.lhs)
    except InvalidPathError:
        return False
    match constraint.op:
        case FieldOperator.EQUALS:
            return canonical_string(resolved) == constraint.rhs
        case _:
            assert_never(constraint.op)
