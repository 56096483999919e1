"""SQL generation for probe tables.

Table and column names are derived from source documents, so every
identifier is validated before it is placed into DDL or DML.
"""

import re
from collections.abc import Iterable

from esmigrate.core.errors import SchemaCreationError
from esmigrate.core.models import ProbeSchema

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Postgres truncates longer names; keep generated names portable.
MAX_IDENTIFIER_LENGTH = 63

TABLE_PREFIX = "analytics_"
INDEX_PREFIX = "src_"

FIXED_COLUMNS = frozenset({"id", "time", "host_id", "object_name"})


def is_safe_identifier(name: str) -> bool:
    """Return True if name can be used unquoted as a SQL identifier."""
    return bool(_IDENTIFIER.fullmatch(name)) and len(name) <= MAX_IDENTIFIER_LENGTH


def quote(name: str) -> str:
    return f'"{name}"'


def table_name(probe: str) -> str:
    return f"{TABLE_PREFIX}{probe}"


def index_name(probe: str) -> str:
    return f"{INDEX_PREFIX}{probe}"


def validate_shape(probe: str, fields: Iterable[str]) -> tuple[str, ...]:
    """Validate a probe and its field names.

    Returns:
        The field names as a tuple, duplicates removed, order preserved.

    Raises:
        SchemaCreationError: If any generated identifier is unsafe or a field
            collides with a fixed column.
    """
    for name in (table_name(probe), index_name(probe)):
        if not is_safe_identifier(name):
            raise SchemaCreationError(probe, f"unsafe identifier {name!r}")

    unique = tuple(dict.fromkeys(fields))
    seen: set[str] = set()
    for name in unique:
        if not is_safe_identifier(name):
            raise SchemaCreationError(probe, f"unsafe field name {name!r}")
        lowered = name.lower()
        if lowered in FIXED_COLUMNS:
            raise SchemaCreationError(probe, f"field {name!r} shadows a fixed column")
        # SQLite column names are case-insensitive
        if lowered in seen:
            raise SchemaCreationError(probe, f"duplicate field name {name!r}")
        seen.add(lowered)
    return unique


def create_table_sql(probe: str, fields: Iterable[str]) -> str:
    value_columns = "".join(f",\n    {quote(name)} REAL" for name in fields)
    return (
        f"CREATE TABLE IF NOT EXISTS {quote(table_name(probe))} (\n"
        "    id INTEGER PRIMARY KEY AUTOINCREMENT,\n"
        "    time TEXT,\n"
        "    host_id TEXT,\n"
        f"    object_name TEXT{value_columns}\n"
        ")"
    )


def create_index_sql(probe: str) -> str:
    return (
        f"CREATE INDEX IF NOT EXISTS {quote(index_name(probe))} "
        f"ON {quote(table_name(probe))} (host_id, time, object_name)"
    )


def insert_sql(probe: str, fields: Iterable[str]) -> str:
    fields = tuple(fields)
    columns = ", ".join(["time", "host_id", "object_name", *map(quote, fields)])
    params = ", ".join("?" for _ in range(len(fields) + 3))
    return f"INSERT INTO {quote(table_name(probe))} ({columns}) VALUES ({params})"


def build_schema(probe: str, fields: Iterable[str]) -> ProbeSchema:
    """Validate a shape and render its insert template."""
    validated = validate_shape(probe, fields)
    return ProbeSchema(
        probe=probe,
        fields=validated,
        table_name=table_name(probe),
        insert_sql=insert_sql(probe, validated),
    )
