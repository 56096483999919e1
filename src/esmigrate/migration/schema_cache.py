"""Per-run cache of probe schemas with create-once semantics."""

import asyncio
import logging
from collections.abc import Iterable

import aiosqlite

from esmigrate.adapters.storage.pool import ConnectionPool
from esmigrate.adapters.storage.sink import INSERT_PROBE_FIELD, SELECT_PROBE_FIELDS
from esmigrate.core import schema_builder
from esmigrate.core.errors import SchemaCreationError
from esmigrate.core.models import ProbeSchema

logger = logging.getLogger(__name__)


class SchemaCache:
    """Resolves probes to their relational schema, creating tables once.

    The first caller for a probe becomes its creator and installs a future
    as the probe's gate. Concurrent callers await the gate and then re-read
    the cache; when creation fails every waiter receives the creator's
    SchemaCreationError and the probe stays absent so a later call can
    retry. Cache hits take no lock and do no I/O.

    Args:
        pool: Connection pool of the sink.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool
        self._schemas: dict[str, ProbeSchema] = {}
        self._pending: dict[str, asyncio.Future[ProbeSchema]] = {}

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, probe: object) -> bool:
        return probe in self._schemas

    def get(self, probe: str) -> ProbeSchema | None:
        return self._schemas.get(probe)

    async def ensure_shape(self, probe: str, fields: Iterable[str]) -> ProbeSchema:
        """Return the schema of probe, creating its table on first use.

        Args:
            probe: Shape key.
            fields: Value names of the first record seen for the probe.
                Ignored once the probe is resolved.

        Raises:
            SchemaCreationError: If this call or the in-flight creation it
                waited on failed.
        """
        while True:
            schema = self._schemas.get(probe)
            if schema is not None:
                return schema

            pending = self._pending.get(probe)
            if pending is None:
                return await self._create(probe, tuple(fields))

            # shield: a cancelled waiter must not cancel the creator's gate
            try:
                await asyncio.shield(pending)
            except asyncio.CancelledError:
                task = asyncio.current_task()
                if not pending.cancelled() or (task is not None and task.cancelling()):
                    raise
                # The creator was cancelled; try again as a new creator.

    async def _create(self, probe: str, fields: tuple[str, ...]) -> ProbeSchema:
        gate: asyncio.Future[ProbeSchema] = asyncio.get_running_loop().create_future()
        self._pending[probe] = gate
        try:
            schema = await self._materialize(probe, fields)
        except SchemaCreationError as exc:
            self._fail(gate, exc)
            raise
        except aiosqlite.Error as exc:
            error = SchemaCreationError(probe, str(exc))
            self._fail(gate, error)
            raise error from exc
        except BaseException:
            if not gate.done():
                gate.cancel()
            raise
        else:
            self._schemas[probe] = schema
            gate.set_result(schema)
            return schema
        finally:
            del self._pending[probe]

    @staticmethod
    def _fail(gate: asyncio.Future[ProbeSchema], error: SchemaCreationError) -> None:
        gate.set_exception(error)
        # Mark retrieved; the gate may have no waiters.
        gate.exception()

    async def _materialize(self, probe: str, fields: tuple[str, ...]) -> ProbeSchema:
        schema = schema_builder.build_schema(probe, fields)
        async with self._pool.transaction() as db:
            async with db.execute(SELECT_PROBE_FIELDS, (probe,)) as cursor:
                persisted = [row[0] async for row in cursor]
            if persisted:
                # Another run or process created the probe; its order wins.
                schema = schema_builder.build_schema(probe, persisted)
                logger.debug("probe %s already persisted", probe)
            else:
                logger.info("New probe: %s [%s]", probe, ", ".join(schema.fields))
                await db.executemany(
                    INSERT_PROBE_FIELD, [(probe, name) for name in schema.fields]
                )
                await db.execute(schema_builder.create_table_sql(probe, schema.fields))
                await db.execute(schema_builder.create_index_sql(probe))
        return schema
