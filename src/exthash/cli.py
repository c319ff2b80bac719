"""
exthash CLI for scripted inserts and structure dumps

Usage:
    python -m exthash.cli insert <key>... [--modulo N] [--max-depth N] [--capacity N] [--format text|json]
    python -m exthash.cli defaults

Commands:
    insert    - Build an index, insert keys in order, print outcomes and the final structure
    defaults  - Print the effective configuration (EXTHASH_* environment overrides applied)
"""

from __future__ import annotations

import argparse
import json
import sys

from .config import IndexConfig
from .constants import InsertStatus
from .exceptions import ConfigurationError
from .index import ExtendibleHashIndex


def insert(
    keys: list[int],
    config: IndexConfig,
    output_format: str = "text",
) -> int:
    """Insert ``keys`` into a fresh index; return 1 if any key was rejected."""
    index = ExtendibleHashIndex(config)
    rejected = False
    results = []
    for key in keys:
        collisions = index.collisions(key)
        result = index.insert(key)
        rejected = rejected or result.rejected
        results.append((result, collisions))

    if output_format == "json":
        document = {
            "config": config.to_dict(),
            "results": [
                {
                    "key": result.key,
                    "status": result.status.value,
                    "bucket_id": result.bucket_id,
                    "splits": result.splits,
                    "reason": result.reason,
                    "collisions": collisions,
                }
                for result, collisions in results
            ],
            "snapshot": index.snapshot().to_dict(),
        }
        print(json.dumps(document, indent=2))
    else:
        for result, collisions in results:
            line = f"{result.key}: {result.status.value}"
            if result.status is InsertStatus.INSERTED:
                line += f" -> bucket {result.bucket_id}"
                if result.splits:
                    line += f" after {result.splits} split(s)"
            if collisions:
                line += f" (hash shared with {collisions})"
            if result.reason:
                line += f" ({result.reason})"
            print(line)
        print(index.debug_dump())
    return 1 if rejected else 0


def defaults(config: IndexConfig) -> int:
    for name, value in config.to_dict().items():
        print(f"{name}={value}")
    return 0


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text!r} is not an integer") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"{value} is negative")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exthash", description="Extendible hashing index tools"
    )
    subparsers = parser.add_subparsers(dest="command")

    insert_parser = subparsers.add_parser("insert", help="Insert keys and dump the index")
    insert_parser.add_argument("keys", nargs="+", type=_non_negative_int, help="Keys to insert")
    insert_parser.add_argument("--modulo", type=int, help="Hash modulo")
    insert_parser.add_argument("--max-depth", type=int, help="Maximum global depth")
    insert_parser.add_argument("--capacity", type=int, help="Bucket capacity")
    insert_parser.add_argument(
        "--format", choices=("text", "json"), default="text", help="Output format"
    )

    subparsers.add_parser("defaults", help="Print the effective configuration")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = IndexConfig.from_env()
        if args.command == "insert":
            overrides = {
                name: value
                for name, value in (
                    ("hash_modulo", args.modulo),
                    ("max_global_depth", args.max_depth),
                    ("bucket_capacity", args.capacity),
                )
                if value is not None
            }
            return insert(args.keys, config.replace(**overrides), args.format)
        if args.command == "defaults":
            return defaults(config)
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
