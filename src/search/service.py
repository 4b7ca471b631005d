from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence

from src.catalog.errors import QueryError
from src.catalog.models import CHOICE_PREFIX, Choice, Item, SearchHit

from .index import MAX_RESULTS, SearchIndex


@dataclass(frozen=True)
class CatalogServiceConfig:
    search_timeout: Optional[float] = 2.0
    workers: int = 4
    heap_size: int = 50_000_000


logger = logging.getLogger(__name__)


class CatalogService:
    """Application-layer access to the search index.

    Implements:
      1) Search by query text
      2) Autocomplete choices for a partially typed query
      3) Resolving a picked choice (or free text) to one source

    The index is blocking CPU work, so every call is dispatched to a worker
    pool and the event loop stays free to accept other requests.
    """

    def __init__(
        self,
        config: CatalogServiceConfig | None = None,
        *,
        index: SearchIndex | None = None,
    ):
        self.config = config or CatalogServiceConfig()
        self.index = index or SearchIndex(heap_size=self.config.heap_size)
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.workers, thread_name_prefix="catalog-index"
        )

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    async def rebuild(self, items: Sequence[Item]) -> None:
        await self._run(self.index.rebuild, list(items))

    async def search(
        self,
        query: str,
        *,
        limit: int = MAX_RESULTS,
        timeout: Optional[float] = None,
    ) -> List[SearchHit]:
        """Search by query text, bounded by ``timeout`` seconds.

        Falls back to the configured search timeout; ``None`` in both places
        means no bound. A timed-out search raises ``QueryError``; the worker
        finishes in the background but searches never mutate the index.
        """
        timeout = self.config.search_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(self._run(self.index.search, query, limit), timeout)
        except asyncio.TimeoutError as e:
            raise QueryError(
                f"Search timed out after {timeout}s", details={"query": query, "timeout": timeout}
            ) from e

    async def autocomplete(self, query: str) -> List[Choice]:
        # Autocomplete fires on an empty field; that is not an error.
        if not query or not query.strip():
            return []
        hits = await self.search(query)
        return [Choice.from_hit(hit) for hit in hits]

    async def resolve(self, value: str) -> Optional[str]:
        """Map a picked choice value, or free text, to a single source."""
        if value.startswith(CHOICE_PREFIX):
            return value[len(CHOICE_PREFIX):]
        hits = await self.search(value)
        if not hits:
            logger.debug("No match to resolve for %r", value)
            return None
        return hits[0].source

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
