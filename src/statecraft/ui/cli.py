from __future__ import annotations

import argparse
import importlib
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING, cast

from dotenv import load_dotenv

from statecraft.app import create_schema, purge_cache
from statecraft.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from statecraft.domain.model import Record

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage statecraft storage backends")
    subparsers = parser.add_subparsers(dest="command", required=True)

    schema = subparsers.add_parser("schema", help="Manage the database schema")
    schema_commands = schema.add_subparsers(dest="schema_command", required=True)
    schema_create = schema_commands.add_parser("create", help="Create tables for record types")
    schema_create.add_argument(
        "record_types",
        nargs="+",
        metavar="MODULE:CLASS",
        help="Record classes to create tables for, e.g. myapp.models:User",
    )
    schema_create.add_argument(
        "--drop",
        action="store_true",
        help="Drop existing tables before creating them",
    )

    cache = subparsers.add_parser("cache", help="Manage the configured cache")
    cache_commands = cache.add_subparsers(dest="cache_command", required=True)
    cache_commands.add_parser("purge", help="Remove every cached record")

    return parser.parse_args(list(argv))


def _load_record_type(path: str) -> type[Record]:
    module_name, sep, class_name = path.partition(":")
    if not sep or not module_name or not class_name:
        raise ValueError(f"Invalid record type {path!r}, expected MODULE:CLASS")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"Cannot import module {module_name!r}") from exc
    record_type = getattr(module, class_name, None)
    if not isinstance(record_type, type):
        raise ValueError(f"Module {module_name!r} has no class {class_name!r}")
    return cast("type[Record]", record_type)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    try:
        configure_logging()
    except ConfigurationError:
        log.exception("Invalid logging configuration")
        sys.exit(2)
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        record_types: list[type[Record]] = []
        if parsed_args.command == "schema":
            record_types = [_load_record_type(path) for path in parsed_args.record_types]
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "schema" and parsed_args.schema_command == "create":
            create_schema(record_types, drop_existing=parsed_args.drop)
            log.info("Created schema for %s record types", len(record_types))
        elif parsed_args.command == "cache" and parsed_args.cache_command == "purge":
            if purge_cache():
                log.info("Cache purged")
            else:
                log.info("No cache configured")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
