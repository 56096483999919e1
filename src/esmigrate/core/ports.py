"""Port interfaces for source adapters.

The migration engine depends only on this protocol, not on a concrete
search client.
"""

from typing import Any, Protocol, runtime_checkable

from esmigrate.core.models import PageQuery


@runtime_checkable
class SearchSourcePort(Protocol):
    """Port for paginated search.

    Adapters implementing this protocol return the raw search response for
    one page. Examples: ElasticsearchSource, InMemorySource.
    """

    async def search(self, query: PageQuery, offset: int) -> dict[str, Any]:
        """Fetch one page of hits starting at offset.

        Returns:
            Response of the form ``{"hits": {"total": ..., "hits": [...]}}``.

        Raises:
            ExtractionError: If the source cannot be queried.
        """
        ...

    async def close(self) -> None:
        """Release resources held by the adapter."""
        ...
