"""Decoding of raw source hits into domain records."""

from datetime import UTC, datetime
from typing import Any

from esmigrate.core.errors import InsertError
from esmigrate.core.models import HostRecord, LogRecord, MetricRecord

# Separator between the type prefix and the probe in a metric discriminator
TYPE_SEPARATOR = ":"


def _source(hit: Any) -> dict[str, Any]:
    if not isinstance(hit, dict):
        raise InsertError(f"hit is not an object: {hit!r}", payload=hit)
    source = hit.get("_source")
    if not isinstance(source, dict):
        raise InsertError("hit has no _source document", payload=hit)
    return source


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def normalize_timestamp(value: Any) -> str | None:
    """Normalize a source timestamp to an ISO-8601 string.

    Numbers are read as epoch milliseconds; strings are kept verbatim.
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"unsupported timestamp {value!r}")
    try:
        return datetime.fromtimestamp(value / 1000, tz=UTC).isoformat()
    except (OverflowError, OSError) as exc:
        raise ValueError(f"timestamp out of range {value!r}") from exc


def probe_of(hit: dict[str, Any]) -> str:
    """Extract the probe from a hit's type discriminator.

    The discriminator is ``_type`` when the source still exposes mapping
    types, otherwise the document's own ``type`` field.
    """
    discriminator = hit.get("_type")
    if not discriminator or discriminator == "_doc":
        discriminator = _source(hit).get("type")
    if not isinstance(discriminator, str) or not discriminator:
        raise InsertError("hit has no type discriminator", payload=hit)
    probe = discriminator.rsplit(TYPE_SEPARATOR, 1)[-1]
    if not probe:
        raise InsertError(f"empty probe in discriminator {discriminator!r}", payload=hit)
    return probe


def decode_metric(hit: dict[str, Any]) -> MetricRecord:
    """Decode an analytics hit.

    Raises:
        InsertError: If the hit is malformed.
    """
    source = _source(hit)
    raw_values = source.get("values") or {}
    if not isinstance(raw_values, dict):
        raise InsertError("metric values are not an object", payload=hit)
    try:
        values = {
            str(name): float(value) if value is not None else 0.0
            for name, value in raw_values.items()
        }
        timestamp = normalize_timestamp(source.get("timestamp"))
    except (TypeError, ValueError) as exc:
        raise InsertError(f"malformed metric record: {exc}", payload=hit) from exc
    return MetricRecord(
        probe=probe_of(hit),
        timestamp=timestamp,
        host_id=_text(source.get("hostId")),
        host_name=_text(source.get("hostName")),
        object_name=_text(source.get("objectName")),
        values=values,
    )


def decode_log(hit: dict[str, Any]) -> LogRecord:
    """Decode a log hit.

    Raises:
        InsertError: If the hit is malformed.
    """
    source = _source(hit)
    try:
        timestamp = normalize_timestamp(source.get("timestamp"))
    except ValueError as exc:
        raise InsertError(f"malformed log record: {exc}", payload=hit) from exc
    return LogRecord(
        host_id=_text(source.get("hostId")),
        host_name=_text(source.get("hostName")),
        component=_text(source.get("component")),
        message=_text(source.get("message")),
        facility=_text(source.get("facility")),
        severity=_text(source.get("severity")),
        timestamp=timestamp,
        origin=_text(source.get("origin")),
    )


def host_of(record: MetricRecord | LogRecord) -> HostRecord | None:
    """Return the host registration for a record, if it names a host."""
    if not record.host_id:
        return None
    return HostRecord(host_id=record.host_id, host_name=record.host_name)
