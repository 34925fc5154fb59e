"""Runtime configuration model for Revscope.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_KEY_LAYOUT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_OUTPUT_FORMAT,
    SUPPORTED_KEY_LAYOUTS,
    SUPPORTED_LOG_LEVELS,
    SUPPORTED_OUTPUT_FORMATS,
)
from core.errors import RevscopeConfigError


@dataclass(frozen=True)
class RevscopeConfig:
    """Validated runtime configuration.

    Attributes:
        key_layout: On-disk revision key layout of the database files.
        output_format: Default CLI rendering format for key summaries.
        log_level: Minimum structured log level.
    """

    key_layout: str
    output_format: str
    log_level: str

    @classmethod
    def from_env(cls) -> "RevscopeConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RevscopeConfigError: If environment values are invalid.
        """
        key_layout = _parse_choice(
            "REVSCOPE_KEY_LAYOUT",
            os.getenv("REVSCOPE_KEY_LAYOUT", DEFAULT_KEY_LAYOUT),
            SUPPORTED_KEY_LAYOUTS,
        )
        output_format = _parse_choice(
            "REVSCOPE_OUTPUT",
            os.getenv("REVSCOPE_OUTPUT", DEFAULT_OUTPUT_FORMAT),
            SUPPORTED_OUTPUT_FORMATS,
        )
        log_level = _parse_choice(
            "REVSCOPE_LOG_LEVEL",
            os.getenv("REVSCOPE_LOG_LEVEL", DEFAULT_LOG_LEVEL),
            SUPPORTED_LOG_LEVELS,
        )
        return cls(key_layout=key_layout, output_format=output_format, log_level=log_level)


def _parse_choice(variable: str, raw_value: str, choices: tuple[str, ...]) -> str:
    """Validate one enumerated environment value.

    Args:
        variable: Environment variable name, used in the error message.
        raw_value: Raw string from environment.
        choices: Accepted values.

    Returns:
        Normalized lowercase value.

    Raises:
        RevscopeConfigError: If value is not one of the choices.
    """
    value = raw_value.strip().lower()
    if value not in choices:
        raise RevscopeConfigError(
            f"Invalid {variable} value: expected one of {', '.join(choices)}, "
            f"got '{raw_value}'. Set {variable} to a supported value."
        )
    return value
