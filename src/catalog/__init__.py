"""Catalog layer.

Holds the item record type, the snapshot file store and the remote feed
client. Everything here is I/O at the edges of the catalog; indexing and
querying live in ``src.search``.
"""

from .config import CatalogConfig
from .errors import (
    CatalogError,
    DecodeError,
    IndexWriteError,
    NetworkError,
    QueryError,
    StorageError,
)
from .feed import FeedFetcher, decode_feed
from .models import Choice, Item, SearchHit
from .snapshot import SnapshotStore

__all__ = [
    "CatalogConfig",
    "CatalogError",
    "Choice",
    "DecodeError",
    "FeedFetcher",
    "IndexWriteError",
    "Item",
    "NetworkError",
    "QueryError",
    "SearchHit",
    "SnapshotStore",
    "StorageError",
    "decode_feed",
]
