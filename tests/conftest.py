"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src and project root directories to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    for import_root in (project_root / "src", project_root):
        if str(import_root) not in sys.path:
            sys.path.insert(0, str(import_root))


@pytest.fixture
def registry_db(tmp_path: Path) -> Path:
    """Database file whose latest keyspace holds the four registry fixture keys."""
    from tests.bolt_fixtures import registry_history

    return registry_history().write(tmp_path / "db")
