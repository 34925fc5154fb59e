"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import RevscopeConfig
from core.errors import RevscopeConfigError


def test_from_env_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset variables should fall back to the documented defaults."""
    for variable in ("REVSCOPE_KEY_LAYOUT", "REVSCOPE_OUTPUT", "REVSCOPE_LOG_LEVEL"):
        monkeypatch.delenv(variable, raising=False)

    config = RevscopeConfig.from_env()

    assert config == RevscopeConfig(key_layout="compact", output_format="json", log_level="warning")


def test_from_env_normalizes_case_and_whitespace(monkeypatch: pytest.MonkeyPatch) -> None:
    """Values should be trimmed and lowercased before validation."""
    monkeypatch.setenv("REVSCOPE_KEY_LAYOUT", " ETCD ")
    monkeypatch.setenv("REVSCOPE_OUTPUT", "Yaml")

    config = RevscopeConfig.from_env()

    assert (config.key_layout, config.output_format) == ("etcd", "yaml")


@pytest.mark.parametrize(
    ("variable", "value"),
    [
        ("REVSCOPE_KEY_LAYOUT", "wide"),
        ("REVSCOPE_OUTPUT", "xml"),
        ("REVSCOPE_LOG_LEVEL", "verbose"),
    ],
)
def test_from_env_raises_for_unsupported_values(
    monkeypatch: pytest.MonkeyPatch, variable: str, value: str
) -> None:
    """Config should fail with the offending variable named."""
    monkeypatch.setenv(variable, value)

    with pytest.raises(RevscopeConfigError, match=variable):
        RevscopeConfig.from_env()
