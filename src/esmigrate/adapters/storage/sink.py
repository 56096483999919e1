"""Fixed sink tables and the destructive reset."""

import logging

import aiosqlite

from esmigrate.adapters.storage.pool import ConnectionPool

logger = logging.getLogger(__name__)

_SINK_SCHEMA = """
CREATE TABLE IF NOT EXISTS probe_values (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    probe TEXT NOT NULL,
    value_name TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS pr_val ON probe_values(probe, value_name);

CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    host_id TEXT,
    component TEXT,
    message TEXT,
    facility TEXT,
    severity TEXT,
    time TEXT,
    origin TEXT
);
CREATE INDEX IF NOT EXISTS idx_logs_host_severity ON logs(host_id, severity);

CREATE TABLE IF NOT EXISTS hosts (
    host_id TEXT PRIMARY KEY,
    host_name TEXT
);
"""

FIXED_TABLES = ("probe_values", "logs", "hosts")

INSERT_LOG = """
INSERT INTO logs (host_id, component, message, facility, severity, time, origin)
VALUES (?, ?, ?, ?, ?, ?, ?)
"""

SELECT_PROBE_FIELDS = """
SELECT value_name FROM probe_values WHERE probe = ? ORDER BY id ASC
"""

INSERT_PROBE_FIELD = """
INSERT INTO probe_values (probe, value_name) VALUES (?, ?)
"""

SELECT_HOST = """
SELECT 1 FROM hosts WHERE host_id = ?
"""

UPSERT_HOST = """
INSERT INTO hosts (host_id, host_name) VALUES (?, ?)
ON CONFLICT(host_id) DO NOTHING
"""

_SELECT_TABLES = """
SELECT name FROM sqlite_master
WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
"""


async def create_sink_tables(pool: ConnectionPool) -> None:
    """Create the fixed tables if they do not exist."""
    async with pool.connection() as db:
        await db.executescript(_SINK_SCHEMA)
    logger.debug("sink tables ready: %s", ", ".join(FIXED_TABLES))


async def list_tables(db: aiosqlite.Connection) -> list[str]:
    async with db.execute(_SELECT_TABLES) as cursor:
        return [row[0] async for row in cursor]


async def reset_sink(pool: ConnectionPool) -> list[str]:
    """Drop every table in the sink.

    Probe tables are dropped along with the fixed tables; the next migration
    recreates whatever it needs.

    Returns:
        Names of the dropped tables.
    """
    async with pool.transaction() as db:
        tables = await list_tables(db)
        for name in tables:
            escaped = name.replace('"', '""')
            await db.execute(f'DROP TABLE IF EXISTS "{escaped}"')
    logger.info("dropped %d tables", len(tables))
    return tables
