"""Keyword search script over the local snapshot.

Configuration via constants below (no CLI args). Run:
	uv run python scripts/search.py

Environment:
	NUB_SNAPSHOT_PATH  (default four.bin)
	NUB_FEED_URL       (used only when no snapshot exists yet)
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import sys
from typing import List

# Ensure the repository root is on path
CURRENT_DIR = Path(__file__).resolve().parent
ROOT_DIR = CURRENT_DIR.parent
if str(ROOT_DIR) not in sys.path:
	sys.path.insert(0, str(ROOT_DIR))

from src.catalog import CatalogConfig, FeedFetcher, SearchHit, SnapshotStore  # type: ignore  # noqa: E402
from src.catalog.models import format_search_hit  # type: ignore  # noqa: E402
from src.search import SearchIndex  # type: ignore  # noqa: E402


# ---------------------------------------------------------------------------
# Configuration Constants
# ---------------------------------------------------------------------------
QUERY_TEXT: str = "silly cat"
LOG_LEVEL: str = "INFO"


def search(query: str) -> List[SearchHit]:
	"""Seed an index from the snapshot (or the feed) and run one query.

	Returns the hits and logs an aggregated multi-line block with results.
	"""
	logger = logging.getLogger(__name__)

	config = CatalogConfig.from_env()
	store = SnapshotStore(config.snapshot_path)
	fetcher = FeedFetcher(config.feed_url, timeout=config.feed_timeout)
	items = asyncio.run(store.load_or_fetch(fetcher))

	index = SearchIndex(heap_size=config.index_heap_bytes)
	index.rebuild(items)

	hits = index.search(query)
	header = f"Returned {len(hits)} of {len(items)} items. \nQuery: {query!r} \n"
	lines: List[str] = [header]
	for idx, hit in enumerate(hits, start=1):
		lines.append(f"{idx}. {format_search_hit(hit)}")
	logger.info("\n".join(lines))
	return hits


def main() -> int:
	logging.basicConfig(
		level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
		format="%(asctime)s %(levelname)s %(name)s - %(message)s",
	)
	try:
		search(QUERY_TEXT)
		return 0
	except Exception as e:  # pragma: no cover
		logging.exception("Search failed: %s", e)
		return 1

if __name__ == "__main__":  # pragma: no cover
	raise SystemExit(main())
