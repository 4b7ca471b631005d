"""Background refresh of the catalog index."""

from .refresh import RefreshScheduler, RefreshState

__all__ = ["RefreshScheduler", "RefreshState"]
