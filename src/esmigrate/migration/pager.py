"""Paginated extraction from a search source."""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from esmigrate.core.errors import ExtractionError
from esmigrate.core.models import PageQuery, PageResult, ProgressReport
from esmigrate.core.ports import SearchSourcePort
from esmigrate.core.progress import compute_progress, format_progress

logger = logging.getLogger(__name__)

BatchHandler = Callable[[list[dict[str, Any]]], Awaitable[None]]
ProgressHandler = Callable[[ProgressReport], None]


@dataclass(frozen=True)
class PagerResult:
    """Final counters of a completed extraction."""

    retrieved: int
    total: int
    pages: int


def parse_page(response: Any, offset: int) -> PageResult:
    """Read total and hits from a raw search response.

    Raises:
        ExtractionError: If the response carries no hits or no total.
    """
    hits = response.get("hits") if isinstance(response, dict) else None
    if not isinstance(hits, dict):
        raise ExtractionError("search response has no hits")

    total = hits.get("total")
    if isinstance(total, dict):
        total = total.get("value")
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        raise ExtractionError(f"search response has no usable total: {total!r}")

    batch = hits.get("hits")
    if batch is None:
        batch = []
    if not isinstance(batch, list):
        raise ExtractionError("search response hits are not a list")
    return PageResult(total=total, hits=batch, next_offset=offset + len(batch))


class Pager:
    """Drives page-by-page retrieval of one query.

    The next page is requested only after ``on_batch`` has finished with the
    current one.

    Args:
        source: Search source adapter.
        on_progress: Called with a ProgressReport after every page. Defaults
            to logging a progress line.
        clock: Time source in seconds, injectable for tests.
    """

    def __init__(
        self,
        source: SearchSourcePort,
        on_progress: ProgressHandler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._on_progress = on_progress or self._log_progress
        self._clock = clock

    @staticmethod
    def _log_progress(report: ProgressReport) -> None:
        logger.info(format_progress("extract", report))

    async def fetch_all(self, query: PageQuery, on_batch: BatchHandler) -> PagerResult:
        """Retrieve every hit of query, handing each page to on_batch.

        Raises:
            ExtractionError: If a page is unusable or the source runs out of
                hits before the reported total.
        """
        offset = 0
        retrieved = 0
        total: int | None = None
        pages = 0
        started_at = self._clock()

        while total is None or retrieved < total:
            page_started_at = self._clock()
            page = parse_page(await self._source.search(query, offset), offset)
            pages += 1
            if total is None:
                total = page.total
                logger.debug("%s: %d records to retrieve", query.index, total)

            if not page.hits:
                if retrieved < total:
                    raise ExtractionError(
                        f"{query.index}: source exhausted after {retrieved} of "
                        f"{total} records"
                    )
                break

            retrieved += len(page.hits)
            offset = page.next_offset
            await on_batch(page.hits)
            self._on_progress(
                compute_progress(
                    retrieved=retrieved,
                    total=total,
                    started_at=started_at,
                    page_started_at=page_started_at,
                    now=self._clock(),
                    batch_size=len(page.hits),
                )
            )

        return PagerResult(retrieved=retrieved, total=total, pages=pages)
