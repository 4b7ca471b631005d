"""Error taxonomy for the catalog.

Every failure the catalog raises derives from ``CatalogError`` so callers can
catch the whole family at the boundary and still branch on the concrete type.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base class for catalog failures."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NetworkError(CatalogError):
    """The remote feed could not be reached, timed out or answered non-2xx."""


class DecodeError(CatalogError):
    """The feed payload is not a JSON array of ``{source, tags}`` objects."""


class StorageError(CatalogError):
    """The snapshot file could not be read or written."""


class IndexWriteError(CatalogError):
    """Building or committing index documents failed."""


class QueryError(CatalogError):
    """The query is empty, malformed, or ran past its timeout."""
