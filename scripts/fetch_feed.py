"""Fetch the remote feed once and write it to the local snapshot.

Useful to pre-seed a deployment so the service starts on the fast path.
Configuration comes from the environment (see src/catalog/config.py).
"""

import asyncio
import logging
import sys
from pathlib import Path

CURRENT_DIR = Path(__file__).resolve().parent
ROOT_DIR = CURRENT_DIR.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.catalog import CatalogConfig, CatalogError, FeedFetcher, SnapshotStore  # noqa: E402

# --- Logging ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)


async def main_async() -> int:
    config = CatalogConfig.from_env()
    fetcher = FeedFetcher(config.feed_url, timeout=config.feed_timeout)
    store = SnapshotStore(config.snapshot_path)

    try:
        items = await fetcher.fetch()
    except CatalogError as e:
        logging.error(f"Failed to fetch {config.feed_url}: {e.message}")
        return 1

    untagged = sum(1 for item in items if not item.tags)
    if untagged:
        logging.warning(f"   {untagged:,} items carry no tags and can only be found by exact source.")

    try:
        store.save(items)
    except CatalogError as e:
        logging.error(f"Failed to write snapshot: {e.message}")
        return 1

    logging.info(f"All {len(items):,} items saved to {store.path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main_async()))
