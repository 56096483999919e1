"""Core domain models for migrated records."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PageQuery:
    """A paginated query against one index pattern.

    Attributes:
        index: Index pattern to search (e.g., analytics-*).
        filter: Query clause sent as the request's ``query``.
        size: Maximum number of hits per page.
    """

    index: str
    filter: dict[str, Any] = field(default_factory=lambda: {"match_all": {}})
    size: int = 100


@dataclass(frozen=True)
class PageResult:
    """One page returned by the source.

    Attributes:
        total: Total matching count reported by the source.
        hits: Raw hits of this page, in source order.
        next_offset: Cursor offset of the following page.
    """

    total: int
    hits: list[dict[str, Any]]
    next_offset: int


@dataclass(frozen=True)
class MetricRecord:
    """A time-series sample belonging to one probe shape.

    Attributes:
        probe: Shape key selecting the backing table.
        timestamp: ISO-8601 timestamp of the sample.
        host_id: Identifier of the originating host.
        host_name: Display name of the originating host.
        object_name: Name of the measured object.
        values: Field name to numeric value.
    """

    probe: str
    timestamp: str | None
    host_id: str | None
    host_name: str | None
    object_name: str | None
    values: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class LogRecord:
    """A host log event with a fixed shape."""

    host_id: str | None
    host_name: str | None
    component: str | None
    message: str | None
    facility: str | None
    severity: str | None
    timestamp: str | None
    origin: str | None


@dataclass(frozen=True)
class HostRecord:
    """A host registration row."""

    host_id: str
    host_name: str | None


@dataclass(frozen=True)
class ProbeSchema:
    """Relational schema materialized for one probe.

    The field list is frozen when the schema is created. Values for fields
    the schema does not know are dropped on bind; fields missing from a
    record bind as 0.0.

    Attributes:
        probe: Shape key.
        fields: Ordered value column names.
        table_name: Backing table name.
        insert_sql: Parameterized insert template.
    """

    probe: str
    fields: tuple[str, ...]
    table_name: str
    insert_sql: str

    def bind(self, record: MetricRecord) -> tuple[Any, ...]:
        """Build insert parameters for a record of this probe."""
        values = tuple(record.values.get(name) or 0.0 for name in self.fields)
        return (record.timestamp, record.host_id, record.object_name, *values)

    def dropped_fields(self, record: MetricRecord) -> list[str]:
        """Return value names of a record that the schema cannot store."""
        return [name for name in record.values if name not in self.fields]


@dataclass(frozen=True)
class ProgressReport:
    """Progress projection after one page.

    Attributes:
        retrieved: Records retrieved so far.
        total: Total records the source reported.
        percent: Completion percentage in [0, 100].
        rate: Records per second for the last page, None when unknown.
        average_rate: Records per second since the first page, None when unknown.
        eta_seconds: Seconds until completion at the average rate.
        eta: Projected completion time on the clock that produced ``now``
            (the monotonic clock by default), None when unknown.
    """

    retrieved: int
    total: int
    percent: float
    rate: float | None
    average_rate: float | None
    eta_seconds: float | None
    eta: float | None


@dataclass
class PipelineStats:
    """Mutable counters for one ingestion pipeline."""

    name: str
    total: int = 0
    retrieved: int = 0
    pages: int = 0
    migrated: int = 0
    failed: int = 0


@dataclass(frozen=True)
class MigrationSummary:
    """Outcome of a completed migration run."""

    logs: PipelineStats
    metrics: PipelineStats
    probes: int
    hosts: int

    @property
    def failed(self) -> int:
        return self.logs.failed + self.metrics.failed

    @property
    def migrated(self) -> int:
        return self.logs.migrated + self.metrics.migrated
