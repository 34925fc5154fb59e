"""Revscope CLI entry points.

This module exposes list and hash commands over database files.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import sys
from typing import Any, Sequence

from cli.summary_output import render_checksum, render_keys, render_summaries
from core.config import RevscopeConfig
from core.constants import (
    SUPPORTED_KEY_LAYOUTS,
    SUPPORTED_LOG_LEVELS,
    SUPPORTED_OUTPUT_FORMATS,
)
from core.errors import RevscopeError
from core.logging_config import configure_logging
from core.types import PROJECT_EVERYTHING, PROJECT_KEYS_ONLY, Filter, Projection
from query.filter_engine import new_prefix_filter, parse_filters
from store.inspector_sdk import InspectorClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="revscope",
        description="Inspect control-plane store database files offline",
    )
    parser.add_argument(
        "--key-layout",
        choices=SUPPORTED_KEY_LAYOUTS,
        help="Override REVSCOPE_KEY_LAYOUT for this command",
    )
    parser.add_argument(
        "--log-level",
        choices=SUPPORTED_LOG_LEVELS,
        help="Override REVSCOPE_LOG_LEVEL for this command",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_list_command(subparsers)
    _add_hash_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Revscope CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.key_layout, args.log_level)
        if args.command == "list":
            return _run_list_command(client, args)
        if args.command == "hash":
            return _run_hash_command(client, args)
    except RevscopeError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(key_layout: str | None, log_level: str | None) -> InspectorClient:
    """Build SDK client with optional config overrides.

    Args:
        key_layout: Optional key layout override.
        log_level: Optional log level override.

    Returns:
        Configured SDK client.
    """
    config = RevscopeConfig.from_env()
    if key_layout:
        config = replace(config, key_layout=key_layout)
    if log_level:
        config = replace(config, log_level=log_level)
    configure_logging(config.log_level)
    return InspectorClient(config)


def _run_list_command(client: InspectorClient, args: argparse.Namespace) -> int:
    """Handle list command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    filters: list[Filter] = []
    if args.prefix:
        filters.append(new_prefix_filter(args.prefix))
    if args.filter:
        filters.extend(parse_filters(args.filter))
    projection = _build_projection(args.keys_only, args.field)
    summaries = client.list_key_summaries(
        args.database,
        filters=filters,
        projection=projection,
        revision=args.revision,
    )
    if args.keys_only:
        output = render_keys(summaries)
    else:
        output = render_summaries(summaries, args.output or client.config.output_format)
    if output:
        print(output)
    return 0


def _run_hash_command(client: InspectorClient, args: argparse.Namespace) -> int:
    """Handle hash command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    checksum = client.hash_by_revision(args.database, revision=args.revision)
    print(render_checksum(checksum))
    return 0


def _build_projection(keys_only: bool, fields: list[str] | None) -> Projection:
    if keys_only:
        return PROJECT_KEYS_ONLY
    if fields:
        return Projection(value_paths=tuple(fields))
    return PROJECT_EVERYTHING


def _add_list_command(subparsers: Any) -> None:
    """Register list subcommand."""
    parser = subparsers.add_parser("list", help="List keys alive at a revision")
    parser.add_argument("database", help="Path to the database file")
    parser.add_argument("--prefix", help="Only keys starting with this prefix")
    parser.add_argument(
        "--filter",
        help="Field filters, e.g. '.Value.metadata.namespace=default,.TypeMeta.Kind=Pod'",
    )
    parser.add_argument(
        "--revision",
        type=int,
        default=0,
        help="Reconstruct the keyspace as of this revision (0 for latest)",
    )
    parser.add_argument("--keys-only", action="store_true", help="Print only key names")
    parser.add_argument(
        "--field",
        action="append",
        help="Dot path to include in the value, e.g. .Value.metadata.name (repeatable)",
    )
    parser.add_argument(
        "--output",
        choices=SUPPORTED_OUTPUT_FORMATS,
        help="Override REVSCOPE_OUTPUT for this command",
    )


def _add_hash_command(subparsers: Any) -> None:
    """Register hash subcommand."""
    parser = subparsers.add_parser("hash", help="Hash the keyspace alive at a revision")
    parser.add_argument("database", help="Path to the database file")
    parser.add_argument(
        "--revision",
        type=int,
        default=0,
        help="Hash the keyspace as of this revision (0 for latest)",
    )
