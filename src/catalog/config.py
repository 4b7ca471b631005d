from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_FEED_URL = "https://solanapulseserver-production.up.railway.app/memeslist"

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class CatalogConfig:
    feed_url: str = DEFAULT_FEED_URL
    feed_timeout: float = 30.0
    snapshot_path: Path = Path("four.bin")
    refresh_interval: float = 300.0
    search_timeout: float = 2.0
    search_workers: int = 4
    index_heap_bytes: int = 50_000_000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "CatalogConfig":
        """Build a config from the environment (and a ``.env`` file if present).

        Env overrides:
          - NUB_FEED_URL
          - NUB_FEED_TIMEOUT_SECONDS (default 30)
          - NUB_SNAPSHOT_PATH (default four.bin)
          - NUB_REFRESH_INTERVAL_SECONDS (default 300)
          - NUB_SEARCH_TIMEOUT_SECONDS (default 2)
          - NUB_SEARCH_WORKERS (default 4)
          - NUB_INDEX_HEAP_BYTES (default 50_000_000)
          - LOG_LEVEL (default INFO)
        """
        if dotenv:
            load_dotenv(override=True)

        config = cls(
            feed_url=os.getenv("NUB_FEED_URL", DEFAULT_FEED_URL).strip() or DEFAULT_FEED_URL,
            feed_timeout=_env_float("NUB_FEED_TIMEOUT_SECONDS", cls.feed_timeout),
            snapshot_path=Path(os.getenv("NUB_SNAPSHOT_PATH", "").strip() or "four.bin"),
            refresh_interval=_env_float("NUB_REFRESH_INTERVAL_SECONDS", cls.refresh_interval),
            search_timeout=_env_float("NUB_SEARCH_TIMEOUT_SECONDS", cls.search_timeout),
            search_workers=_env_int("NUB_SEARCH_WORKERS", cls.search_workers),
            index_heap_bytes=_env_int("NUB_INDEX_HEAP_BYTES", cls.index_heap_bytes),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
        if config.refresh_interval <= 0:
            raise ValueError("NUB_REFRESH_INTERVAL_SECONDS must be positive")
        if config.search_workers < 1:
            raise ValueError("NUB_SEARCH_WORKERS must be at least 1")
        logger.debug("Loaded catalog config: %s", config)
        return config
