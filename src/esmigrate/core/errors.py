"""Exceptions raised by the migration engine."""

from typing import Any


class MigrationError(Exception):
    """Base class for migration failures."""


class ExtractionError(MigrationError):
    """The source returned no usable page or ran out of records early."""


class SchemaCreationError(MigrationError):
    """Materializing the relational schema of a probe failed."""

    def __init__(self, probe: str, reason: str) -> None:
        super().__init__(f"cannot create schema for probe {probe!r}: {reason}")
        self.probe = probe


class InsertError(MigrationError):
    """A single record could not be decoded or persisted.

    Attributes:
        payload: The raw source document, kept for diagnosis.
    """

    def __init__(self, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class PoolConnectionError(MigrationError):
    """The connection pool could not service a request."""
