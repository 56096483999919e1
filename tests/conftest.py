"""Shared test fixtures for all test modules."""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
from tests.helpers import LOG_INDEX, METRICS_INDEX

from esmigrate.adapters.source.in_memory import InMemorySource
from esmigrate.adapters.storage.pool import ConnectionPool
from esmigrate.adapters.storage.sink import create_sink_tables
from esmigrate.core.models import PageQuery
from esmigrate.migration.orchestrator import MigrationOrchestrator


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for sink tests."""
    return str(tmp_path / "sink.db")


@pytest.fixture
async def pool(db_path: str) -> AsyncGenerator[ConnectionPool]:
    """Opened four-connection pool with proper cleanup."""
    pool = ConnectionPool(db_path, size=4, busy_timeout=5.0)
    await pool.open()
    yield pool
    await pool.close()


@pytest.fixture
async def sink(pool: ConnectionPool) -> ConnectionPool:
    """Pool whose database already holds the fixed tables."""
    await create_sink_tables(pool)
    return pool


@pytest.fixture
def source() -> InMemorySource:
    """In-memory search source with empty log and analytics indices."""
    return InMemorySource({LOG_INDEX: [], METRICS_INDEX: []})


@pytest.fixture
def make_orchestrator(pool: ConnectionPool, source: InMemorySource):
    """Factory fixture for orchestrators over the shared pool and source.

    Usage:
        async def test_something(make_orchestrator):
            summary = await make_orchestrator(page_size=10).run()
    """

    def _make(page_size: int = 100, fail_fast: bool = False, src: Any = None):
        return MigrationOrchestrator(
            src or source,
            pool,
            log_query=PageQuery(index=LOG_INDEX, size=page_size),
            metrics_query=PageQuery(index=METRICS_INDEX, size=page_size),
            fail_fast=fail_fast,
        )

    return _make
