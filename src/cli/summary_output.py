"""Key summary rendering for the CLI.

This module turns key summaries into JSON or YAML documents and
renders checksums as ``name=value`` lines.
"""

from __future__ import annotations

import json
from typing import Any, Sequence

import yaml

from core.constants import OUTPUT_FORMAT_YAML
from core.types import Checksum, KeySummary


def summary_to_payload(summary: KeySummary) -> dict[str, Any]:
    """Serialize a key summary into a JSON-safe payload."""
    payload: dict[str, Any] = {
        "key": _display_key(summary.key),
        "version": summary.version,
        "modRevision": summary.mod_revision,
        "createRevision": summary.create_revision,
    }
    if summary.stats is not None:
        payload["stats"] = {
            "versions": summary.stats.versions,
            "valueSize": summary.stats.value_size,
            "allVersionsValueSize": summary.stats.all_versions_value_size,
        }
    if summary.value is not None:
        payload["value"] = summary.value
    return payload


def render_summaries(summaries: Sequence[KeySummary], output_format: str) -> str:
    """Render summaries as one JSON array or YAML sequence."""
    payloads = [summary_to_payload(summary) for summary in summaries]
    if output_format == OUTPUT_FORMAT_YAML:
        return yaml.safe_dump(payloads, sort_keys=False).rstrip("\n")
    return json.dumps(payloads, indent=2)


def render_keys(summaries: Sequence[KeySummary]) -> str:
    """Render one key per line."""
    return "\n".join(_display_key(summary.key) for summary in summaries)


def render_checksum(checksum: Checksum) -> str:
    """Render a checksum as ``name=value`` lines."""
    return "\n".join(
        (
            f"hash={checksum.hash}",
            f"revision={checksum.revision}",
            f"key_count={checksum.key_count}",
        )
    )


def _display_key(key: bytes) -> str:
    return key.decode("utf-8", errors="backslashreplace")
