"""Python SDK for offline database inspection.

This module exposes the high-level API an outer layer uses to list key
summaries and hash snapshots of database files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from core.config import RevscopeConfig
from core.types import PROJECT_EVERYTHING, Checksum, Filter, KeySummary, Projection
from decode.payload_codec import PayloadDecoder
from store.consistency_hash import hash_by_revision
from store.snapshot_reconstructor import list_key_summaries


class InspectorClient:
    """Primary SDK entry point for inspection workflows."""

    def __init__(
        self,
        config: RevscopeConfig | None = None,
        decoder: PayloadDecoder | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            decoder: Optional payload decoder; defaults to JSON, YAML, and
                storage-binary support.
        """
        self._config = config or RevscopeConfig.from_env()
        self._decoder = decoder or PayloadDecoder()

    @property
    def config(self) -> RevscopeConfig:
        return self._config

    def list_key_summaries(
        self,
        database_path: str | Path,
        filters: Sequence[Filter] | None = None,
        projection: Projection = PROJECT_EVERYTHING,
        revision: int = 0,
    ) -> list[KeySummary]:
        """List live keys of a database file.

        Args:
            database_path: Database file path.
            filters: Filters that every listed key must match.
            projection: Which parts of each value to materialize.
            revision: Target revision, or ``0`` for the latest.

        Returns:
            Key summaries in ascending key order.

        Raises:
            RevscopeStoreError: If the file cannot be read.
        """
        return list_key_summaries(
            self._decoder,
            database_path,
            filters,
            projection,
            revision,
            key_layout=self._config.key_layout,
        )

    def hash_by_revision(self, database_path: str | Path, revision: int = 0) -> Checksum:
        """Hash the keyspace of a database file at a revision.

        Args:
            database_path: Database file path.
            revision: Target revision, or ``0`` for the latest.

        Returns:
            Snapshot checksum.

        Raises:
            RevscopeStoreError: If the file cannot be read.
        """
        return hash_by_revision(database_path, revision, key_layout=self._config.key_layout)
