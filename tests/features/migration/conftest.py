"""BDD step definitions for migration features."""

from pathlib import Path

import pytest
from pytest_bdd import given, parsers, then, when
from tests.features.migration.steps_helpers import (
    MigrationScenarioContext,
    cleanup,
    migrate,
    query,
    run_async,
    user_tables,
)
from tests.helpers import LOG_INDEX, METRICS_INDEX, log_hit, metric_hit

from esmigrate.adapters.source.in_memory import InMemorySource
from esmigrate.core.errors import MigrationError


@pytest.fixture
def ctx() -> MigrationScenarioContext:
    """Fresh scenario context for each test."""
    return MigrationScenarioContext()


def _fields(text: str) -> list[str]:
    return [name.strip() for name in text.split(",") if name.strip()]


# === Given ===
@given("an empty sink database")
def step_empty_sink(ctx: MigrationScenarioContext, tmp_path: Path) -> None:
    ctx.db_path = str(tmp_path / "sink.db")


@given(
    parsers.parse('the analytics index holds {n:d} "{probe}" records with fields "{fields}"')
)
def step_metric_records(
    ctx: MigrationScenarioContext, n: int, probe: str, fields: str
) -> None:
    ctx.source.add(
        METRICS_INDEX,
        [
            metric_hit(
                probe,
                {name: float(i + 1) for name in _fields(fields)},
                host_id=f"h{i}",
                host_name=f"box{i}",
                object_name=f"o{i}",
            )
            for i in range(n)
        ],
    )


@given("the analytics index holds a record without a document")
def step_broken_record(ctx: MigrationScenarioContext) -> None:
    ctx.source.add(METRICS_INDEX, [{"_type": "analytics:cpu", "_id": "broken"}])


@given(parsers.parse("the log index holds {n:d} record"))
def step_log_records(ctx: MigrationScenarioContext, n: int) -> None:
    ctx.source.add(LOG_INDEX, [log_hit(f"message {i}", host_id="h0") for i in range(n)])


@given(parsers.parse("a page size of {size:d}"))
def step_page_size(ctx: MigrationScenarioContext, size: int) -> None:
    ctx.page_size = size


@given("fail-fast mode")
def step_fail_fast(ctx: MigrationScenarioContext) -> None:
    ctx.fail_fast = True


@given(parsers.parse('a previous migration created probe "{probe}" with fields "{fields}"'))
def step_previous_migration(
    ctx: MigrationScenarioContext, probe: str, fields: str
) -> None:
    earlier = InMemorySource(
        {
            LOG_INDEX: [],
            METRICS_INDEX: [metric_hit(probe, dict.fromkeys(_fields(fields), 1.0))],
        }
    )
    run_async(migrate(ctx.db_path, earlier))


# === When ===
@when("the migration runs")
def step_run_migration(ctx: MigrationScenarioContext) -> None:
    try:
        ctx.summary = run_async(
            migrate(ctx.db_path, ctx.source, ctx.page_size, ctx.fail_fast)
        )
    except MigrationError as exc:
        ctx.error = exc


@when("the sink is cleaned up")
def step_cleanup(ctx: MigrationScenarioContext) -> None:
    run_async(cleanup(ctx.db_path))


# === Then ===
@then(parsers.parse('the table "{table}" holds {n:d} rows'))
def step_table_rows(ctx: MigrationScenarioContext, table: str, n: int) -> None:
    assert query(ctx.db_path, f'SELECT COUNT(*) FROM "{table}"') == [(n,)]


@then(parsers.parse('probe "{probe}" is described by fields "{fields}"'))
def step_probe_fields(ctx: MigrationScenarioContext, probe: str, fields: str) -> None:
    rows = query(
        ctx.db_path,
        f"SELECT value_name FROM probe_values WHERE probe = '{probe}' ORDER BY id",
    )
    assert [row[0] for row in rows] == _fields(fields)


@then(parsers.parse('the table "{table}" has no column "{column}"'))
def step_no_column(ctx: MigrationScenarioContext, table: str, column: str) -> None:
    rows = query(ctx.db_path, f"SELECT name FROM pragma_table_info('{table}')")
    assert column not in {row[0] for row in rows}


@then(parsers.parse('the newest "{table}" row has "{column}" equal to {value:g}'))
def step_newest_value(
    ctx: MigrationScenarioContext, table: str, column: str, value: float
) -> None:
    rows = query(ctx.db_path, f'SELECT "{column}" FROM "{table}" ORDER BY id DESC LIMIT 1')
    assert rows == [(value,)]


@then(parsers.parse('the analytics index was requested at offsets "{offsets}"'))
def step_offsets(ctx: MigrationScenarioContext, offsets: str) -> None:
    seen = [offset for index, offset, _ in ctx.source.requests if index == METRICS_INDEX]
    assert seen == [int(offset) for offset in offsets.split(",")]


@then("no record failed")
def step_no_failures(ctx: MigrationScenarioContext) -> None:
    assert ctx.error is None
    assert ctx.summary is not None
    assert ctx.summary.failed == 0


@then(parsers.parse("{n:d} record failed"))
def step_failures(ctx: MigrationScenarioContext, n: int) -> None:
    assert ctx.error is None
    assert ctx.summary is not None
    assert ctx.summary.failed == n


@then(parsers.parse('the migration aborts with "{error}"'))
def step_aborts(ctx: MigrationScenarioContext, error: str) -> None:
    assert ctx.error is not None
    assert type(ctx.error).__name__ == error


@then("the sink has no tables")
def step_no_tables(ctx: MigrationScenarioContext) -> None:
    assert user_tables(ctx.db_path) == set()
