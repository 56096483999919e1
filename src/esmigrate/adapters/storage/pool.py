"""Bounded pool of aiosqlite connections."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from esmigrate.core.errors import PoolConnectionError

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Fixed-size pool of aiosqlite connections.

    ``acquire`` suspends while every connection is in use, which throttles
    producers to the speed of the sink. Connections run in autocommit mode;
    callers that need a write transaction use ``transaction``.

    For :memory: databases the pool holds a single connection since SQLite
    in-memory databases are connection-scoped.

    Args:
        db_path: SQLite database path or ":memory:".
        size: Number of connections.
        busy_timeout: Seconds a connection waits for a competing writer.
    """

    def __init__(self, db_path: str, size: int = 4, busy_timeout: float = 30.0) -> None:
        if size < 1:
            raise ValueError("pool size must be at least 1")
        if db_path == ":memory:" and size > 1:
            logger.warning("in-memory database: pool size reduced from %d to 1", size)
            size = 1
        self._db_path = db_path
        self._size = size
        self._busy_timeout = busy_timeout
        self._connections: list[aiosqlite.Connection] = []
        self._idle: asyncio.Queue[aiosqlite.Connection] | None = None
        self._closed = False

    @property
    def size(self) -> int:
        return self._size

    @property
    def in_use(self) -> int:
        """Number of connections currently acquired."""
        if self._idle is None:
            return 0
        return len(self._connections) - self._idle.qsize()

    async def open(self) -> None:
        """Open all connections."""
        if self._idle is not None:
            return
        idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        try:
            for _ in range(self._size):
                conn = await aiosqlite.connect(
                    self._db_path,
                    timeout=self._busy_timeout,
                    isolation_level=None,
                )
                self._connections.append(conn)
                if self._db_path != ":memory:":
                    await conn.execute("PRAGMA journal_mode=WAL")
                idle.put_nowait(conn)
        except (aiosqlite.Error, OSError) as exc:
            await self._close_all()
            raise PoolConnectionError(f"cannot open {self._db_path!r}: {exc}") from exc
        self._idle = idle
        self._closed = False
        logger.debug("opened %d connections to %s", self._size, self._db_path)

    async def acquire(self) -> aiosqlite.Connection:
        """Take a connection, waiting until one is free."""
        if self._closed or self._idle is None:
            raise PoolConnectionError("connection pool is not open")
        return await self._idle.get()

    def release(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        if self._idle is None:
            raise PoolConnectionError("connection pool is not open")
        self._idle.put_nowait(conn)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Context manager pairing acquire with release on every exit path."""
        conn = await self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Connection inside ``BEGIN IMMEDIATE``, committed on success.

        Any failure, including cancellation while ``BEGIN`` waits for the
        write lock or a failed ``COMMIT``, rolls back before the connection
        is returned to the pool.
        """
        async with self.connection() as conn:
            try:
                await conn.execute("BEGIN IMMEDIATE")
                yield conn
                await conn.execute("COMMIT")
            except BaseException:
                await _rollback(conn)
                raise

    async def _close_all(self) -> None:
        connections, self._connections = self._connections, []
        for conn in connections:
            await conn.close()

    async def close(self) -> None:
        """Close every connection."""
        self._closed = True
        self._idle = None
        await self._close_all()

    async def __aenter__(self) -> "ConnectionPool":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def _rollback(conn: aiosqlite.Connection) -> None:
    # Statements run in order on the connection's worker thread, so a
    # cancelled BEGIN still pending there completes before this ROLLBACK.
    try:
        await conn.execute("ROLLBACK")
    except aiosqlite.Error:
        if conn.in_transaction:
            raise
        logger.debug("rollback skipped: no transaction was started")
