"""Revscope exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class RevscopeError(Exception):
    """Base exception for all Revscope failures."""


class RevscopeConfigError(RevscopeError):
    """Raised for invalid runtime configuration."""


class RevscopeStoreError(RevscopeError):
    """Raised when a database file cannot be opened or read."""


class MissingBucketError(RevscopeStoreError):
    """Raised when a required top-level bucket is absent from the file."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f'missing "{name}" bucket in database file. '
            "Check that the file is a control-plane store snapshot."
        )
        self.name = name


class CorruptRecordError(RevscopeStoreError):
    """Raised when a page, record key, or record value cannot be decoded."""

    def __init__(self, context: str) -> None:
        super().__init__(f"corrupt record: {context}")
        self.context = context


class InvalidFilterSpecError(RevscopeError):
    """Raised when a raw filter expression cannot be parsed."""

    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(
            f"Invalid filter '{raw}': {reason}. "
            "Use '<dotpath>=<literal>[,<dotpath>=<literal>]*'."
        )
        self.raw = raw


class InvalidPathError(RevscopeError):
    """Raised when a dot path cannot be resolved against one document."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot resolve '{path}': {reason}")
        self.path = path


class PayloadDecodeError(RevscopeError):
    """Raised when a stored payload cannot be detected or converted."""
