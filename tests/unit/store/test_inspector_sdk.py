"""Unit tests for the inspection SDK client."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import RevscopeConfig
from core.errors import RevscopeStoreError
from core.types import PROJECT_KEYS_ONLY
from query.filter_engine import new_prefix_filter, parse_filters
from store.inspector_sdk import InspectorClient
from tests.bolt_fixtures import StoreHistory


def _config(**overrides: str) -> RevscopeConfig:
    values = {"key_layout": "compact", "output_format": "json", "log_level": "warning"}
    values.update(overrides)
    return RevscopeConfig(**values)


def test_client_lists_filtered_keys(registry_db: Path) -> None:
    """SDK listing should apply prefix and field filters together."""
    client = InspectorClient(_config())
    filters = [new_prefix_filter("/registry/pods"), *parse_filters(".Value.metadata.labels.job-name=pi")]

    summaries = client.list_key_summaries(registry_db, filters, PROJECT_KEYS_ONLY)

    assert [summary.key for summary in summaries] == [b"/registry/pods/default/pi-dqtsw"]


def test_client_hash_uses_configured_key_layout(tmp_path: Path) -> None:
    """SDK hashing should decode record keys with the configured layout."""
    history = StoreHistory(key_layout="etcd")
    history.put("/registry/a", b"{}")
    path = history.write(tmp_path / "db")

    checksum = InspectorClient(_config(key_layout="etcd")).hash_by_revision(path)

    assert (checksum.revision, checksum.key_count) == (2, 1)


def test_client_reads_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Default construction should resolve config from the environment."""
    monkeypatch.setenv("REVSCOPE_OUTPUT", "yaml")

    client = InspectorClient()

    assert client.config.output_format == "yaml"


def test_client_raises_for_missing_file(tmp_path: Path) -> None:
    """Listing a missing file should raise a store error."""
    with pytest.raises(RevscopeStoreError):
        InspectorClient(_config()).list_key_summaries(tmp_path / "absent.db")
