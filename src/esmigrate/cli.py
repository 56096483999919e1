"""Command-line entry point.

Usage:
    esmigrate [options] host[:port]   migrate logs and analytics into the sink
    esmigrate -c [options]            drop every sink table
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from esmigrate.adapters.logging import configure_logging
from esmigrate.adapters.source.elasticsearch import ElasticsearchSource
from esmigrate.adapters.storage.pool import ConnectionPool
from esmigrate.adapters.storage.sink import reset_sink
from esmigrate.config import MigrationSettings
from esmigrate.core.errors import MigrationError
from esmigrate.core.models import MigrationSummary, PageQuery
from esmigrate.migration.orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="esmigrate",
        description="Migrate Elasticsearch logs and analytics into SQLite",
    )
    ap.add_argument("host", nargs="?", help="Search host as host[:port] (port 9200)")
    ap.add_argument(
        "-c", "--cleanup", action="store_true", help="Drop every sink table and exit"
    )
    ap.add_argument("--db", dest="db_path", help="SQLite database path")
    ap.add_argument("--pool-size", type=int, help="Number of sink connections")
    ap.add_argument("--page-size", type=int, help="Hits requested per page")
    ap.add_argument("--log-index", help="Index pattern of log documents")
    ap.add_argument("--metrics-index", help="Index pattern of analytics documents")
    ap.add_argument(
        "--fail-fast",
        action="store_true",
        default=None,
        help="Abort on the first record that cannot be migrated",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def load_settings(args: argparse.Namespace) -> MigrationSettings:
    """Merge command-line flags over environment settings."""
    overrides: dict[str, Any] = {
        key: getattr(args, key)
        for key in (
            "db_path",
            "pool_size",
            "page_size",
            "log_index",
            "metrics_index",
            "fail_fast",
        )
        if getattr(args, key) is not None
    }
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return MigrationSettings(**overrides)


async def migrate(settings: MigrationSettings, host: str) -> MigrationSummary:
    """Run one migration from host into the configured sink."""
    async with (
        ElasticsearchSource.from_host(host, timeout=settings.request_timeout) as source,
        ConnectionPool(
            settings.db_path, settings.pool_size, settings.busy_timeout
        ) as pool,
    ):
        orchestrator = MigrationOrchestrator(
            source,
            pool,
            log_query=PageQuery(index=settings.log_index, size=settings.page_size),
            metrics_query=PageQuery(
                index=settings.metrics_index, size=settings.page_size
            ),
            fail_fast=settings.fail_fast,
        )
        return await orchestrator.run()


async def cleanup(settings: MigrationSettings) -> list[str]:
    """Drop every table of the configured sink."""
    logger.info("Cleanup database %s", settings.db_path)
    async with ConnectionPool(settings.db_path, 1, settings.busy_timeout) as pool:
        return await reset_sink(pool)


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run the requested action and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.cleanup and not args.host:
        parser.print_usage(sys.stderr)
        return 1

    try:
        settings = load_settings(args)
        configure_logging(settings.log_level)
    except (ValidationError, ValueError) as exc:
        print(f"esmigrate: invalid configuration: {exc}", file=sys.stderr)
        return 1

    try:
        if args.cleanup:
            asyncio.run(cleanup(settings))
            return 0
        summary = asyncio.run(migrate(settings, args.host))
    except (MigrationError, ValueError) as exc:
        logger.debug("migration aborted", exc_info=True)
        print(f"esmigrate: {exc}", file=sys.stderr)
        return 1

    if summary.failed:
        logger.warning("%d records could not be migrated", summary.failed)
    return 0
