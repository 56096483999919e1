"""Builders and query helpers shared by the test modules."""

from typing import Any

import aiosqlite

from esmigrate.adapters.storage.pool import ConnectionPool

LOG_INDEX = "logs-*"
METRICS_INDEX = "analytics-*"


def metric_hit(
    probe: str,
    values: dict[str, Any],
    host_id: str = "h1",
    host_name: str = "box1",
    object_name: str = "sda",
    timestamp: Any = "2017-03-01T10:00:00Z",
) -> dict[str, Any]:
    """Build an analytics hit as the search source returns it."""
    return {
        "_index": "analytics-2017.03.01",
        "_type": f"analytics:{probe}",
        "_source": {
            "timestamp": timestamp,
            "hostId": host_id,
            "hostName": host_name,
            "objectName": object_name,
            "values": values,
        },
    }


def log_hit(
    message: str = "disk almost full",
    host_id: str = "h1",
    host_name: str = "box1",
    severity: str = "warning",
) -> dict[str, Any]:
    """Build a log hit as the search source returns it."""
    return {
        "_index": "logs-2017.03.01",
        "_type": "log",
        "_source": {
            "hostId": host_id,
            "hostName": host_name,
            "component": "kernel",
            "message": message,
            "facility": "daemon",
            "severity": severity,
            "timestamp": "2017-03-01T10:00:00Z",
            "origin": "syslog",
        },
    }


async def fetch_rows(pool: ConnectionPool, sql: str, params: tuple = ()) -> list[tuple]:
    """Run a query on a pooled connection and return every row."""
    async with pool.connection() as db:
        async with db.execute(sql, params) as cursor:
            return [tuple(row) async for row in cursor]


async def table_names(pool: ConnectionPool) -> set[str]:
    rows = await fetch_rows(
        pool, "SELECT name FROM sqlite_master WHERE type = 'table'"
    )
    return {row[0] for row in rows if not row[0].startswith("sqlite_")}


async def trace_statements(pool: ConnectionPool) -> list[str]:
    """Record every SQL statement executed by the pool's connections."""
    statements: list[str] = []
    conns: list[aiosqlite.Connection] = [
        await pool.acquire() for _ in range(pool.size)
    ]
    for conn in conns:
        await conn.set_trace_callback(statements.append)
        pool.release(conn)
    return statements
