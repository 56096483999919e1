"""Migration orchestrator running the log and metric pipelines."""

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

import aiosqlite

from esmigrate.adapters.storage.pool import ConnectionPool
from esmigrate.adapters.storage.sink import INSERT_LOG, create_sink_tables
from esmigrate.core.errors import InsertError
from esmigrate.core.models import (
    LogRecord,
    MetricRecord,
    MigrationSummary,
    PageQuery,
    PipelineStats,
    ProgressReport,
)
from esmigrate.core.ports import SearchSourcePort
from esmigrate.core.progress import format_progress
from esmigrate.core.records import decode_log, decode_metric, host_of
from esmigrate.migration.host_cache import HostCache
from esmigrate.migration.pager import Pager
from esmigrate.migration.schema_cache import SchemaCache

logger = logging.getLogger(__name__)

RecordHandler = Callable[[dict[str, Any]], Awaitable[None]]


def first_error(group: BaseExceptionGroup) -> BaseException:
    """Return the first leaf exception of a (possibly nested) group."""
    error: BaseException = group
    while isinstance(error, BaseExceptionGroup):
        error = error.exceptions[0]
    return error


async def gather_or_raise(*coros: Coroutine[Any, Any, None]) -> None:
    """Run coroutines concurrently; on failure raise the first leaf error.

    Remaining coroutines are cancelled as soon as one fails. The error is
    raised outside the handler so its own cause chain is kept intact.
    """
    error: BaseException | None = None
    try:
        async with asyncio.TaskGroup() as tg:
            for coro in coros:
                tg.create_task(coro)
    except BaseExceptionGroup as group:
        error = first_error(group)
    if error is not None:
        raise error


def _describe(payload: Any) -> str:
    try:
        return json.dumps(payload, default=str, sort_keys=True)
    except (TypeError, ValueError):
        return repr(payload)


class MigrationOrchestrator:
    """Migrates logs and metrics from a search source into the sink.

    Caches live on the orchestrator, so one instance corresponds to one run.

    Args:
        source: Search source adapter.
        pool: Opened connection pool of the sink.
        log_query: Query selecting log documents.
        metrics_query: Query selecting analytics documents.
        fail_fast: Abort the run on the first record-level failure instead
            of counting and skipping it.
        clock: Time source for progress reporting.
    """

    def __init__(
        self,
        source: SearchSourcePort,
        pool: ConnectionPool,
        log_query: PageQuery,
        metrics_query: PageQuery,
        fail_fast: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._pool = pool
        self._log_query = log_query
        self._metrics_query = metrics_query
        self._fail_fast = fail_fast
        self._clock = clock
        self.schemas = SchemaCache(pool)
        self.hosts = HostCache(pool)
        self.log_stats = PipelineStats(name="logs")
        self.metric_stats = PipelineStats(name="metrics")

    async def run(self) -> MigrationSummary:
        """Create the fixed tables, then run both pipelines concurrently.

        Raises:
            MigrationError: The first fatal error of either pipeline. The
                other pipeline is cancelled; committed rows stand.
        """
        await create_sink_tables(self._pool)
        await gather_or_raise(
            self._pipeline(self._log_query, self.log_stats, self._migrate_log),
            self._pipeline(self._metrics_query, self.metric_stats, self._migrate_metric),
        )

        summary = MigrationSummary(
            logs=self.log_stats,
            metrics=self.metric_stats,
            probes=len(self.schemas),
            hosts=len(self.hosts),
        )
        logger.info(
            "migration finished: %d records migrated, %d failed, %d probes, %d hosts",
            summary.migrated,
            summary.failed,
            summary.probes,
            summary.hosts,
        )
        return summary

    async def _pipeline(
        self, query: PageQuery, stats: PipelineStats, migrate: RecordHandler
    ) -> None:
        async def on_batch(hits: list[dict[str, Any]]) -> None:
            await gather_or_raise(*(self._guarded(hit, stats, migrate) for hit in hits))

        def on_progress(report: ProgressReport) -> None:
            stats.retrieved = report.retrieved
            stats.total = report.total
            logger.info(format_progress(stats.name, report, stats.failed))

        pager = Pager(self._source, on_progress=on_progress, clock=self._clock)
        logger.info("%s: migrating from %s", stats.name, query.index)
        result = await pager.fetch_all(query, on_batch)
        stats.retrieved = result.retrieved
        stats.total = result.total
        stats.pages = result.pages

    async def _guarded(
        self, hit: dict[str, Any], stats: PipelineStats, migrate: RecordHandler
    ) -> None:
        try:
            await migrate(hit)
        except InsertError as exc:
            stats.failed += 1
            logger.error("%s: %s; record: %s", stats.name, exc, _describe(exc.payload))
            if self._fail_fast:
                raise
        else:
            stats.migrated += 1

    async def _run_record(
        self,
        hit: dict[str, Any],
        persist: Coroutine[Any, Any, None],
        host: Coroutine[Any, Any, None],
    ) -> None:
        try:
            await gather_or_raise(persist, host)
        except InsertError as exc:
            if exc.payload is None:
                exc.payload = hit
            raise

    async def _migrate_metric(self, hit: dict[str, Any]) -> None:
        record = decode_metric(hit)
        await self._run_record(
            hit, self._persist_metric(record), self.hosts.ensure(host_of(record))
        )

    async def _migrate_log(self, hit: dict[str, Any]) -> None:
        record = decode_log(hit)
        await self._run_record(
            hit, self._persist_log(record), self.hosts.ensure(host_of(record))
        )

    async def _persist_metric(self, record: MetricRecord) -> None:
        schema = await self.schemas.ensure_shape(record.probe, record.values)
        dropped = schema.dropped_fields(record)
        if dropped:
            logger.debug(
                "probe %s: dropping fields unknown to its schema: %s",
                record.probe,
                ", ".join(dropped),
            )
        async with self._pool.connection() as db:
            try:
                await db.execute(schema.insert_sql, schema.bind(record))
            except aiosqlite.Error as exc:
                raise InsertError(
                    f"cannot insert into {schema.table_name}: {exc}"
                ) from exc

    async def _persist_log(self, record: LogRecord) -> None:
        async with self._pool.connection() as db:
            try:
                await db.execute(
                    INSERT_LOG,
                    (
                        record.host_id,
                        record.component,
                        record.message,
                        record.facility,
                        record.severity,
                        record.timestamp,
                        record.origin,
                    ),
                )
            except aiosqlite.Error as exc:
                raise InsertError(f"cannot insert log record: {exc}") from exc
