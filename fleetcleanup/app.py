import argparse
import os
from pathlib import Path
from typing import List, Optional

from . import __version__
from .cleanup import cleanup_obsolete_units
from .env import load_env
from .logger import get_logger
from .report import report_summary
from .schema import ParseError
from .store import DEFAULT_ETCD_ADDR, DEFAULT_TIMEOUT, EtcdClient, StoreError, parse_endpoint

DEFAULT_LOG_LEVEL = "info"


def cmd_cleanup(args: argparse.Namespace) -> None:
    etcd_addr = args.etcd_addr or os.getenv("ETCD_ADDR") or DEFAULT_ETCD_ADDR
    try:
        endpoint = parse_endpoint(etcd_addr)
    except ValueError as e:
        raise SystemExit(f"--etcd-addr '{etcd_addr}' is not valid: {e}")

    log_level = args.log_level or os.getenv("FLEET_CLEANUP_LOG_LEVEL") or DEFAULT_LOG_LEVEL
    logger = get_logger()
    try:
        logger.set_level(log_level)
    except ValueError as e:
        raise SystemExit(f"Invalid log-level '{log_level}': {e}")
    if args.log_dir:
        logger.add_file_handler(Path(args.log_dir))

    if args.timeout <= 0:
        raise SystemExit("--timeout must be positive")

    client = EtcdClient(endpoint, timeout=args.timeout)
    logger.debug("Starting cleanup", endpoint=endpoint, dry_run=args.dry_run)
    try:
        result = cleanup_obsolete_units(client, dry_run=args.dry_run)
    except (StoreError, ParseError) as e:
        logger.log_metrics_summary()
        raise SystemExit(f"Failed to run cleanup: {e}")

    report_summary(result)
    logger.log_metrics_summary()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fleet-cleanup",
        description="Remove fleet units from etcd that no job refers to anymore",
    )
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--etcd-addr", help=f"Address of etcd (or set ETCD_ADDR; default: {DEFAULT_ETCD_ADDR})")
    parser.add_argument("--dry-run", action="store_true", help="If set, only list garbage, but do not remove it")
    parser.add_argument(
        "--log-level",
        help=f"Minimum log level: debug|info|warning|error (or set FLEET_CLEANUP_LOG_LEVEL; default: {DEFAULT_LOG_LEVEL})",
    )
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help=f"Seconds per etcd request (default: {DEFAULT_TIMEOUT:g})")
    parser.add_argument("--log-dir", help="Also write logs to a daily file in this directory")
    parser.set_defaults(func=cmd_cleanup)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    # Load .env if present (ETCD_ADDR, FLEET_CLEANUP_LOG_LEVEL)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    args.func(args)


if __name__ == "__main__":
    main()
