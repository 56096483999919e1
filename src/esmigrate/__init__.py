"""Migrate Elasticsearch logs and analytics into a relational store."""

from esmigrate.adapters.source.elasticsearch import ElasticsearchSource
from esmigrate.adapters.source.in_memory import InMemorySource
from esmigrate.adapters.storage.pool import ConnectionPool
from esmigrate.core.errors import (
    ExtractionError,
    InsertError,
    MigrationError,
    PoolConnectionError,
    SchemaCreationError,
)
from esmigrate.core.models import MigrationSummary, PageQuery, ProbeSchema
from esmigrate.migration.orchestrator import MigrationOrchestrator

__all__ = [
    "ConnectionPool",
    "ElasticsearchSource",
    "ExtractionError",
    "InMemorySource",
    "InsertError",
    "MigrationError",
    "MigrationOrchestrator",
    "MigrationSummary",
    "PageQuery",
    "PoolConnectionError",
    "ProbeSchema",
    "SchemaCreationError",
]
