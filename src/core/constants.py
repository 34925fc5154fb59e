"""Core constants used across Revscope modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

KEY_BUCKET_NAME = b"key"
META_BUCKET_NAME = b"meta"
TOMBSTONE_MARKER = b"t"
ETCD_REVISION_SEPARATOR = b"_"
KEY_LAYOUT_COMPACT = "compact"
KEY_LAYOUT_ETCD = "etcd"
SUPPORTED_KEY_LAYOUTS = (KEY_LAYOUT_COMPACT, KEY_LAYOUT_ETCD)
DEFAULT_KEY_LAYOUT = KEY_LAYOUT_COMPACT
OUTPUT_FORMAT_JSON = "json"
OUTPUT_FORMAT_YAML = "yaml"
SUPPORTED_OUTPUT_FORMATS = (OUTPUT_FORMAT_JSON, OUTPUT_FORMAT_YAML)
DEFAULT_OUTPUT_FORMAT = OUTPUT_FORMAT_JSON
SUPPORTED_LOG_LEVELS = ("debug", "info", "warning", "error")
DEFAULT_LOG_LEVEL = "warning"
HASH_ALGORITHM = "sha256"
