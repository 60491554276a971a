"""
CLI entry point.

Usage:
  stylo SOURCE SEVERITY MESSAGE     # record one line and exit
  stylo -d | --daemon               # listen on the socket until signalled
  stylo -c | --compact              # drop rows older than 24h, compact

Paths come from the environment (see stylo.config).
"""

from __future__ import annotations

import argparse
import sys

from .config import load_config
from .daemon import Daemon
from .errors import StyloError
from .log import log, log_error
from .oneshot import write_one
from .retention import sweep


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stylo",
        description="Local log sink: one-shot writes, a socket daemon, retention.",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-d", "--daemon", action="store_true",
        help="Run the ingestion daemon on the local socket.",
    )
    mode.add_argument(
        "-c", "--compact", action="store_true",
        help="Delete rows older than 24 hours and compact the store.",
    )
    parser.add_argument(
        "fields", nargs="*", metavar="SOURCE SEVERITY MESSAGE",
        help="Record a single line and exit.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.daemon or args.compact) and args.fields:
        parser.error("--daemon/--compact take no positional arguments")
    if not (args.daemon or args.compact):
        if len(args.fields) != 3:
            parser.error("expected exactly SOURCE SEVERITY MESSAGE")
        if any(not f.strip() for f in args.fields):
            parser.error("SOURCE, SEVERITY and MESSAGE must be non-empty")

    try:
        cfg = load_config()
    except ValueError as e:
        parser.error(str(e))

    try:
        if args.daemon:
            return Daemon(cfg).run()

        if args.compact:
            result = sweep(cfg.db_path, busy_timeout_ms=cfg.busy_timeout_ms)
            log(f"retention: compacted, {result.remaining} rows remain")
            return 0

        source, severity, message = args.fields
        write_one(
            cfg.db_path, source, severity, message,
            busy_timeout_ms=cfg.busy_timeout_ms,
        )
        return 0

    except StyloError as e:
        log_error(f"stylo: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
