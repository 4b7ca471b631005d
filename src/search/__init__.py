"""Search application layer.

This package provides the in-memory index and the service wrapped around it
that request handlers use:
- Search by free-text query
- Autocomplete choices and choice resolution

Index work is blocking; the service runs it on a worker pool.
"""

from .index import MAX_RESULTS, SearchIndex
from .service import CatalogService, CatalogServiceConfig

__all__ = ["CatalogService", "CatalogServiceConfig", "MAX_RESULTS", "SearchIndex"]
