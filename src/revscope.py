"""Public SDK surface for Revscope.

This module provides a stable import path for library users.
It re-exports the primary client, filter helpers, and typed models.
"""

from __future__ import annotations

from core.config import RevscopeConfig
from core.errors import (
    CorruptRecordError,
    InvalidFilterSpecError,
    MissingBucketError,
    RevscopeError,
)
from core.types import (
    PROJECT_EVERYTHING,
    PROJECT_KEYS_ONLY,
    Checksum,
    FieldConstraint,
    FieldFilter,
    FieldOperator,
    Filter,
    KeySummary,
    KeySummaryStats,
    PrefixFilter,
    Projection,
    RevisionKey,
)
from decode.payload_codec import PayloadDecoder
from query.filter_engine import build_filter, new_prefix_filter, parse_filters
from store.inspector_sdk import InspectorClient
from store.revision_codec import decode_revision_key, encode_revision_key

__all__ = [
    "PROJECT_EVERYTHING",
    "PROJECT_KEYS_ONLY",
    "Checksum",
    "CorruptRecordError",
    "FieldConstraint",
    "FieldFilter",
    "FieldOperator",
    "Filter",
    "InspectorClient",
    "InvalidFilterSpecError",
    "KeySummary",
    "KeySummaryStats",
    "MissingBucketError",
    "PayloadDecoder",
    "PrefixFilter",
    "Projection",
    "RevisionKey",
    "RevscopeConfig",
    "RevscopeError",
    "build_filter",
    "decode_revision_key",
    "encode_revision_key",
    "new_prefix_filter",
    "parse_filters",
]
