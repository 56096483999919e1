"""SQLite sink: connection pool and fixed schema."""

from esmigrate.adapters.storage.pool import ConnectionPool
from esmigrate.adapters.storage.sink import create_sink_tables, reset_sink

__all__ = ["ConnectionPool", "create_sink_tables", "reset_sink"]
