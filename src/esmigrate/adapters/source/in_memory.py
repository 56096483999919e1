"""In-memory search source."""

from typing import Any

from esmigrate.core.models import PageQuery


class InMemorySource:
    """In-memory implementation of SearchSourcePort.

    Serves hits from per-index lists, shaped like an Elasticsearch search
    response. Suitable for testing and dry runs. Every request is recorded
    in ``requests`` as ``(index, offset, size)``.
    """

    def __init__(self, indices: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self._indices: dict[str, list[dict[str, Any]]] = dict(indices or {})
        self.requests: list[tuple[str, int, int]] = []

    def add(self, index: str, hits: list[dict[str, Any]]) -> None:
        """Append hits to an index."""
        self._indices.setdefault(index, []).extend(hits)

    async def search(self, query: PageQuery, offset: int) -> dict[str, Any]:
        """Return the slice of hits starting at offset."""
        self.requests.append((query.index, offset, query.size))
        hits = self._indices.get(query.index, [])
        return {
            "hits": {
                "total": {"value": len(hits), "relation": "eq"},
                "hits": hits[offset : offset + query.size],
            }
        }

    async def close(self) -> None:
        """Nothing to release."""
