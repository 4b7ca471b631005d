"""Shared fixtures for the catalog tests.

Feed access is replaced by ``FakeFetcher``; snapshot files live in pytest's
``tmp_path``. Nothing here touches the network.
"""

from __future__ import annotations

from typing import List, Sequence, Union

import pytest

from src.catalog import Item, SnapshotStore
from src.search import CatalogService, CatalogServiceConfig, SearchIndex


FetchOutcome = Union[Sequence[Item], BaseException]


class FakeFetcher:
    """Stands in for FeedFetcher; replays outcomes in order, repeating the last."""

    def __init__(self, *outcomes: FetchOutcome) -> None:
        self.outcomes: List[FetchOutcome] = list(outcomes) or [[]]
        self.calls = 0

    async def fetch(self) -> List[Item]:
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, BaseException):
            raise outcome
        return list(outcome)


@pytest.fixture
def pets() -> List[Item]:
    return [
        Item.create("u1", ["happy", "cat"]),
        Item.create("u2", ["sad", "dog"]),
    ]


@pytest.fixture
def index() -> SearchIndex:
    return SearchIndex()


@pytest.fixture
def store(tmp_path) -> SnapshotStore:
    return SnapshotStore(tmp_path / "four.bin")


@pytest.fixture
def service():
    svc = CatalogService(CatalogServiceConfig(search_timeout=5.0, workers=2))
    yield svc
    svc.close()
