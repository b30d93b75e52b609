"""Command-line front end: ``ndjsondelta OLD NEW --key FIELD``."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

from .config import load_config
from .delta import KeySelector, composite_key, field_key
from .log import get_logger, setup_logging
from .sources import HttpObjectReader, SourceError, compute_delta_from_sources, open_source

EXIT_SAME = 0
EXIT_DIFFERENT = 1
EXIT_ERROR = 2


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ndjsondelta",
        description="Show records added, removed and changed between two NDJSON sources",
    )
    parser.add_argument("old", help="Old NDJSON source: a path or remote:<container>/<name>")
    parser.add_argument("new", help="New NDJSON source: a path or remote:<container>/<name>")
    parser.add_argument(
        "--key",
        action="append",
        required=True,
        metavar="FIELD",
        help="Identity field, dotted for nesting (meta.id). Repeat for a composite key",
    )
    parser.add_argument("--sort", action="store_true", help="Order output by key instead of input order")
    parser.add_argument("--summary", action="store_true", help="Print only added/removed/changed counts")
    parser.add_argument("--indent", type=int, default=None, help="Indent JSON output")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Override NDJSONDELTA_LOG_LEVEL",
    )
    return parser.parse_args(argv)


def build_key_selector(fields: list[str]) -> KeySelector:
    selectors = [field_key(*f.split(".")) for f in fields]
    if len(selectors) == 1:
        return selectors[0]
    return composite_key(*selectors)


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config()
    except ValueError as exc:
        print(f"ndjsondelta: {exc}", file=sys.stderr)
        return EXIT_ERROR

    setup_logging(args.log_level or config.log.level)
    log = get_logger("cli")

    reader = None
    if config.remote.base_url:
        reader = HttpObjectReader(
            config.remote.base_url,
            token=config.remote.token or None,
            timeout=config.remote.timeout_seconds,
        )

    try:
        old = open_source(args.old, reader, config.encoding)
        new = open_source(args.new, reader, config.encoding)
        result = compute_delta_from_sources(
            old, new, build_key_selector(args.key), sort_by_key=args.sort
        )
    except (SourceError, ValueError) as exc:
        print(f"ndjsondelta: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except (KeyError, TypeError) as exc:
        log.error("key_selector_failed", key=args.key, error=str(exc))
        print(f"ndjsondelta: cannot extract key {args.key}: {exc}", file=sys.stderr)
        return EXIT_ERROR

    payload = result.counts() if args.summary else result.to_python()
    print(json.dumps(payload, indent=args.indent, ensure_ascii=False))
    return EXIT_SAME if result.is_empty else EXIT_DIFFERENT


if __name__ == "__main__":
    sys.exit(main())
