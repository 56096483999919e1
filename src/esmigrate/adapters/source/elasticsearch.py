"""Elasticsearch search adapter.

Queries the ``_search`` endpoint with ``from``/``size`` pagination over a
non-blocking httpx client.
"""

import logging
from typing import Any

import httpx

from esmigrate.core.errors import ExtractionError
from esmigrate.core.models import PageQuery

logger = logging.getLogger(__name__)

DEFAULT_PORT = 9200


def parse_endpoint(host: str) -> str:
    """Turn a ``host[:port]`` argument into a base URL.

    Args:
        host: Host name with optional port and optional scheme.

    Returns:
        Base URL, defaulting to http and port 9200.

    Raises:
        ValueError: If host is empty or the port is not a number.
    """
    host = host.strip()
    if not host:
        raise ValueError("search host must not be empty")
    scheme = "http"
    if "://" in host:
        scheme, host = host.split("://", 1)
    name, sep, port = host.rstrip("/").partition(":")
    if not name:
        raise ValueError("search host must not be empty")
    if not sep or not port:
        port = str(DEFAULT_PORT)
    if not port.isdigit():
        raise ValueError(f"invalid port {port!r}")
    return f"{scheme}://{name}:{port}"


class ElasticsearchSource:
    """httpx implementation of SearchSourcePort.

    Args:
        base_url: Base URL of the cluster (see ``parse_endpoint``).
        timeout: Request timeout in seconds.
        client: Optional preconfigured client; used by tests to inject a
            mock transport. The source closes only clients it created.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    @classmethod
    def from_host(cls, host: str, timeout: float = 30.0) -> "ElasticsearchSource":
        return cls(parse_endpoint(host), timeout=timeout)

    async def search(self, query: PageQuery, offset: int) -> dict[str, Any]:
        """Fetch one page of hits starting at offset."""
        body = {
            "query": query.filter,
            "size": query.size,
            "from": offset,
            "track_total_hits": True,
        }
        logger.debug("search %s from=%d size=%d", query.index, offset, query.size)
        try:
            response = await self._client.post(f"/{query.index}/_search", json=body)
            response.raise_for_status()
            result: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as exc:
            raise ExtractionError(
                f"search on {query.index!r} failed with status "
                f"{exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(f"search on {query.index!r} failed: {exc}") from exc
        except ValueError as exc:
            raise ExtractionError(
                f"search on {query.index!r} returned invalid JSON"
            ) from exc
        return result

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ElasticsearchSource":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
