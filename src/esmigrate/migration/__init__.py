"""Migration engine: pager, caches and orchestrator."""

from esmigrate.migration.host_cache import HostCache
from esmigrate.migration.orchestrator import MigrationOrchestrator
from esmigrate.migration.pager import Pager
from esmigrate.migration.schema_cache import SchemaCache

__all__ = ["HostCache", "MigrationOrchestrator", "Pager", "SchemaCache"]
