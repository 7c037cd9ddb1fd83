"""
Command-line entry point.

Usage:
  mwarchive
  mwarchive --config wiki.yaml --namespaces 0,4 --limit 0
  mwarchive --backend files --output-path archive/
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from mwarchive.config import BACKENDS, load_config, parse_namespaces
from mwarchive.core.controller import ArchiveController
from mwarchive.core.errors import ArchiveError, ConfigError
from mwarchive.core.logger import create_error_tracker, get_logger, initialize_logging
from mwarchive.core.mediawiki_client import MediaWikiClient
from mwarchive.core.storage import open_persister
from mwarchive.utils.file_manager import FileManager


def _namespaces_arg(value: str) -> List[int]:
    try:
        return parse_namespaces(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="mwarchive", description="Archive MediaWiki pages to SQLite or plain files.")
    ap.add_argument("--config", default=None, help="YAML config file (default: ~/.mwarchive.yaml)")
    ap.add_argument("--api-url", dest="api_url", default=None, help="MediaWiki api.php URL")
    ap.add_argument("--backend", choices=BACKENDS, default=None, help="Storage backend")
    ap.add_argument("--db-path", dest="db_path", default=None, help="SQLite database file")
    ap.add_argument("--output-path", dest="output_path", default=None, help="Output directory (files backend)")
    ap.add_argument("--namespaces", type=_namespaces_arg, default=None, help="Comma-separated namespace IDs")
    ap.add_argument("--limit", type=int, default=None, help="Max pages per namespace (0 = no limit)")
    ap.add_argument("--log-dir", dest="log_dir", default="logs", help="Directory for log files")
    ap.add_argument("--verbose", action="store_true", help="Show debug output on the console")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    initialize_logging(args.log_dir, logging.DEBUG if args.verbose else logging.INFO)
    logger = get_logger("cli")

    overrides = {
        "api_url": args.api_url,
        "backend": args.backend,
        "db_path": args.db_path,
        "output_path": args.output_path,
        "namespaces": args.namespaces,
        "limit": args.limit,
    }

    try:
        config = load_config(args.config, overrides)
    except ArchiveError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    error_tracker = create_error_tracker("controller")
    client = MediaWikiClient.from_config(config)
    try:
        with open_persister(config) as persister:
            controller = ArchiveController(config, client, persister, error_tracker=error_tracker)
            results = controller.run()
            output_stats = persister.get_output_stats() if isinstance(persister, FileManager) else None
    except ArchiveError as e:
        logger.error(f"Archive run failed: {type(e).__name__}: {e}")
        return 1
    finally:
        client.close()

    for namespace, stats in results.items():
        logger.info(
            f"Summary: namespace={namespace} listed={stats['listed']} archived={stats['archived']} "
            f"skipped={stats['skipped']} failed={stats['failed']}"
        )

    if output_stats:
        logger.info(
            f"Output: {output_stats['files']} files, {output_stats['total_size']} bytes "
            f"in {output_stats['output_dir']}"
        )

    if error_tracker.errors:
        summary = error_tracker.get_error_summary()
        counts = ", ".join(f"{name}={count}" for name, count in sorted(summary['error_types'].items()))
        logger.warning(f"{summary['total_errors']} pages failed: {counts}")
        error_tracker.save_error_report(str(Path(args.log_dir) / "error_report.txt"))

    return 0


if __name__ == "__main__":
    sys.exit(main())
