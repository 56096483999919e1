"""Per-run host deduplication."""

import logging

import aiosqlite

from esmigrate.adapters.storage.pool import ConnectionPool
from esmigrate.adapters.storage.sink import SELECT_HOST, UPSERT_HOST
from esmigrate.core.errors import InsertError
from esmigrate.core.models import HostRecord

logger = logging.getLogger(__name__)


class HostCache:
    """Registers each host at most once per run.

    The in-memory set only skips round trips for hosts already seen; the
    conflict-free upsert keeps concurrent first sightings safe.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool
        self._known: set[str] = set()

    def __len__(self) -> int:
        return len(self._known)

    def __contains__(self, host_id: object) -> bool:
        return host_id in self._known

    async def ensure_host(self, host_id: str, host_name: str | None) -> None:
        """Persist a host unless it is already known.

        Raises:
            InsertError: If the lookup or upsert fails.
        """
        if host_id in self._known:
            return
        async with self._pool.connection() as db:
            try:
                async with db.execute(SELECT_HOST, (host_id,)) as cursor:
                    row = await cursor.fetchone()
                if row is None:
                    await db.execute(UPSERT_HOST, (host_id, host_name))
                    logger.debug("registered host %s (%s)", host_id, host_name)
            except aiosqlite.Error as exc:
                raise InsertError(
                    f"cannot register host {host_id!r}: {exc}",
                    payload=HostRecord(host_id=host_id, host_name=host_name),
                ) from exc
        self._known.add(host_id)

    async def ensure(self, host: HostRecord | None) -> None:
        """Register a decoded host; records without a host are skipped."""
        if host is None:
            return
        await self.ensure_host(host.host_id, host.host_name)
