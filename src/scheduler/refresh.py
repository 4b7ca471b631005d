from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

from src.catalog.feed import FeedFetcher
from src.catalog.models import Item
from src.catalog.snapshot import SnapshotStore
from src.search.service import CatalogService

logger = logging.getLogger(__name__)

ErrorObserver = Callable[[BaseException], None]


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PERSISTING = "persisting"
    REBUILDING = "rebuilding"


class RefreshScheduler:
    """Background loop keeping the index in step with the remote feed.

    Each cycle runs fetch -> persist -> rebuild. A failed cycle is logged,
    handed to ``on_error`` and retried on the next tick; the index served
    in the meantime is the last one that committed.
    """

    def __init__(
        self,
        service: CatalogService,
        fetcher: FeedFetcher,
        store: SnapshotStore,
        *,
        interval: float = 300.0,
        on_error: Optional[ErrorObserver] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.service = service
        self.fetcher = fetcher
        self.store = store
        self.interval = interval
        self.on_error = on_error
        self.state = RefreshState.IDLE
        self.last_success: Optional[datetime] = None
        self.consecutive_failures = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def seed(self) -> List[Item]:
        """Build the first index from the snapshot, or the feed if there is none.

        Failures propagate: without an initial corpus there is nothing to serve.
        """
        self.state = RefreshState.FETCHING
        try:
            items = await self.store.load_or_fetch(self.fetcher)
            self.state = RefreshState.REBUILDING
            await self.service.rebuild(items)
        finally:
            self.state = RefreshState.IDLE
        self._mark_success()
        logger.info("Catalog seeded with %d items", len(items))
        return items

    async def refresh(self) -> bool:
        """Run one fetch -> persist -> rebuild cycle; return whether it committed."""
        try:
            self.state = RefreshState.FETCHING
            items = await self.fetcher.fetch()

            self.state = RefreshState.PERSISTING
            await asyncio.to_thread(self.store.save, items)

            self.state = RefreshState.REBUILDING
            await self.service.rebuild(items)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.consecutive_failures += 1
            logger.exception(
                "Refresh failed during %s (consecutive failures: %d)",
                self.state.value,
                self.consecutive_failures,
            )
            self._report(e)
            return False
        finally:
            self.state = RefreshState.IDLE

        self._mark_success()
        logger.info("Refreshed catalog with %d items", len(items))
        return True

    def _mark_success(self) -> None:
        self.last_success = datetime.now(timezone.utc)
        self.consecutive_failures = 0

    def _report(self, error: BaseException) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(error)
        except Exception:
            logger.exception("Refresh error observer raised")

    async def run_forever(self, *, seeded: bool = False) -> None:
        """Seed (unless already done) and then refresh on a fixed cadence."""
        if not seeded:
            await self.seed()
        next_tick = time.monotonic() + self.interval
        while True:
            await asyncio.sleep(max(0.0, next_tick - time.monotonic()))
            await self.refresh()
            next_tick += self.interval
            # Skip ticks missed while a slow cycle was running.
            now = time.monotonic()
            if next_tick < now:
                next_tick = now

    def start(self, *, seeded: bool = True) -> asyncio.Task:
        if self.running:
            raise RuntimeError("Refresh scheduler already running")
        self._task = asyncio.create_task(self.run_forever(seeded=seeded), name="catalog-refresh")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
