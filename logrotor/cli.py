"""Command line interface for the rotating log store."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List

from .core.store import RotatingLogStore
from .errors import ConfigurationError, LogStoreError
from .rotation.retention import RetentionManager
from .utils.config import StoreConfig, load_config
from .utils.types import LogLevel, NamingStrategy

LOGGER = logging.getLogger(__name__)


def build_config(args: argparse.Namespace) -> StoreConfig:
    overrides = {
        "directory": args.directory,
        "base_name": args.base_name,
        "max_file_size_bytes": getattr(args, "max_bytes", None),
        "max_generations": getattr(args, "max_generations", None),
        "naming_strategy": getattr(args, "naming", None),
        "compression_enabled": True if getattr(args, "compress", False) else None,
        "min_level": getattr(args, "min_level", None),
        "async_mode": True if getattr(args, "async_mode", False) else None,
        "queue_capacity": getattr(args, "queue_capacity", None),
        "echo_level": getattr(args, "echo_level", None),
    }
    config_path = getattr(args, "config", None)
    if config_path:
        return load_config(Path(config_path), **overrides)
    return StoreConfig.from_mapping({key: value for key, value in overrides.items() if value is not None})


def build_store(config: StoreConfig) -> RotatingLogStore:
    return RotatingLogStore(config)


def _iter_messages(args: argparse.Namespace) -> Iterable[str]:
    if args.messages:
        return list(args.messages)
    return (line.rstrip("\n") for line in sys.stdin)


def _cmd_write(args: argparse.Namespace) -> int:
    config = build_config(args)
    store = build_store(config)
    with store:
        for message in _iter_messages(args):
            store.log(args.level, message)
    summary = {
        "active": str(config.active_path),
        "records_written": store.records_written,
        "rotations": store.rotation_count,
        "generations": [str(item.path) for item in store.generations()],
    }
    print(json.dumps(summary, indent=2))
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    manager = RetentionManager(build_config(args))
    print(json.dumps([item.to_dict() for item in manager.generations()], indent=2))
    return 0


def _cmd_prune(args: argparse.Namespace) -> int:
    manager = RetentionManager(build_config(args))
    removed = manager.prune()
    print(json.dumps([str(path) for path in removed], indent=2))
    return 0


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("directory", help="Directory holding the log files")
    parser.add_argument("base_name", help="Base name of the log (without .log)")
    parser.add_argument("--config", help="JSON configuration file; flags override its values")
    parser.add_argument(
        "--naming",
        choices=[strategy.value for strategy in NamingStrategy],
        help="Generation naming scheme",
    )
    parser.add_argument("--max-generations", type=int, help="Number of generations to keep")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Size-rotated, retention-bounded log files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug diagnostics")
    subparsers = parser.add_subparsers(dest="command", required=True)

    write = subparsers.add_parser("write", help="Append messages (or stdin lines) to a log")
    _add_target_arguments(write)
    write.add_argument(
        "--message",
        "-m",
        action="append",
        dest="messages",
        help="Message to log. Can be provided multiple times; defaults to stdin lines.",
    )
    write.add_argument("--level", default="INFO", help="Level for the written messages")
    write.add_argument("--min-level", help="Drop records below this level")
    write.add_argument("--echo-level", help="Also print records at or above this level to stderr")
    write.add_argument("--max-bytes", type=int, help="Rotate once the active file reaches this size")
    write.add_argument("--compress", action="store_true", help="Gzip rotated generations")
    write.add_argument("--async", dest="async_mode", action="store_true", help="Write from a background thread")
    write.add_argument("--queue-capacity", type=int, help="Bound the async queue")
    write.set_defaults(handler=_cmd_write)

    listing = subparsers.add_parser("list", help="Show generations, newest first")
    _add_target_arguments(listing)
    listing.set_defaults(handler=_cmd_list)

    prune = subparsers.add_parser("prune", help="Delete generations beyond the retention bound")
    _add_target_arguments(prune)
    prune.set_defaults(handler=_cmd_prune)
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if getattr(args, "level", None) is not None:
        try:
            args.level = LogLevel.parse(args.level)
        except ConfigurationError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
    try:
        return args.handler(args)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except LogStoreError as exc:
        LOGGER.error("Log store failure: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
