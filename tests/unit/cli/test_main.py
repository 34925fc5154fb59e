"""Unit tests for CLI command handling."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from cli.main import main
from tests.bolt_fixtures import FIXTURE_KEYS, write_bolt_file


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for variable in ("REVSCOPE_KEY_LAYOUT", "REVSCOPE_OUTPUT", "REVSCOPE_LOG_LEVEL"):
        monkeypatch.delenv(variable, raising=False)


def test_cli_list_keys_only_prints_one_key_per_line(registry_db: Path, capsys) -> None:
    """Keys-only listing should print every live key."""
    exit_code = main(["list", str(registry_db), "--keys-only"])
    output = capsys.readouterr().out.splitlines()

    assert exit_code == 0 and output == list(FIXTURE_KEYS)


def test_cli_list_applies_prefix_and_filter(registry_db: Path, capsys) -> None:
    """Prefix and field filters should narrow the JSON listing."""
    exit_code = main(
        [
            "list",
            str(registry_db),
            "--prefix",
            "/registry/",
            "--filter",
            ".Value.metadata.namespace=default,.TypeMeta.Kind=Job",
        ]
    )
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert [entry["key"] for entry in payload] == ["/registry/jobs/default/pi"]
    assert payload[0]["version"] == 3 and payload[0]["stats"]["versions"] == 3
    assert payload[0]["value"]["status"] == {"succeeded": 1}


def test_cli_list_renders_yaml_with_fields(registry_db: Path, capsys) -> None:
    """YAML output with field paths should project only those fields."""
    exit_code = main(
        [
            "list",
            str(registry_db),
            "--prefix",
            "/registry/pods",
            "--field",
            ".Value.metadata.labels",
            "--output",
            "yaml",
        ]
    )
    payload = yaml.safe_load(capsys.readouterr().out)

    assert exit_code == 0
    assert payload[0]["value"] == {".Value.metadata.labels": {"job-name": "pi"}}


def test_cli_list_at_revision(registry_db: Path, capsys) -> None:
    """The revision option should list the keyspace as of that revision."""
    exit_code = main(["list", str(registry_db), "--keys-only", "--revision", "3"])

    assert exit_code == 0
    assert capsys.readouterr().out.splitlines() == [
        "/registry/jobs/default/pi",
        "/registry/namespaces/default",
    ]


def test_cli_hash_prints_checksum_fields(registry_db: Path, capsys) -> None:
    """Hash should print the digest, revision and key count."""
    exit_code = main(["hash", str(registry_db)])
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert lines[0].startswith("hash=") and lines[1:] == ["revision=7", "key_count=4"]


def test_cli_reports_missing_bucket(tmp_path: Path, capsys) -> None:
    """Store errors should print a message and exit non-zero."""
    path = write_bolt_file(tmp_path / "db", {b"other": []})

    exit_code = main(["hash", str(path)])

    assert exit_code == 1
    assert 'missing "meta" bucket' in capsys.readouterr().err


def test_cli_reports_invalid_filter(registry_db: Path, capsys) -> None:
    """Malformed filters should exit non-zero without a traceback."""
    exit_code = main(["list", str(registry_db), "--filter", "no-equals-sign"])

    assert exit_code == 1 and "Invalid filter" in capsys.readouterr().err
