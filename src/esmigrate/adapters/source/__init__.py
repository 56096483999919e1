"""Search source adapters implementing SearchSourcePort."""

from esmigrate.adapters.source.elasticsearch import ElasticsearchSource
from esmigrate.adapters.source.in_memory import InMemorySource

__all__ = ["ElasticsearchSource", "InMemorySource"]
