from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse

from src.catalog.config import CatalogConfig
from src.catalog.feed import FeedFetcher
from src.catalog.snapshot import SnapshotStore
from src.scheduler import RefreshScheduler
from src.search import CatalogService, CatalogServiceConfig

from .routers.search import router as search_router


logger = logging.getLogger(__name__)


"""
FastAPI application

The app owns the catalog for its whole lifetime: at startup it seeds the
index (snapshot first, feed as a fallback) and starts the refresh loop; at
shutdown it stops the loop and the index worker pool. A failed seed aborts
startup, there is nothing to serve without an initial corpus.

As with other deployments of this API, the auto-registered OpenAPI/docs
routes are replaced with explicit JSONResponse-based ones so that strict
Accept headers do not produce a 406 on /openapi.json.
"""

# Detect optional base path for deployments under a subpath (e.g.,
# https://example.com/nub-catalog/...). If set, it is used as the ASGI
# root_path and advertised via OpenAPI "servers".
_env_base_path = os.getenv("API_BASE_PATH", "").strip()
if _env_base_path and not _env_base_path.startswith("/"):
    _env_base_path = "/" + _env_base_path
if _env_base_path.endswith("/") and _env_base_path != "/":
    _env_base_path = _env_base_path.rstrip("/")


def create_app(
    config: Optional[CatalogConfig] = None,
    *,
    fetcher: Optional[FeedFetcher] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = config or CatalogConfig.from_env()
        logging.basicConfig(
            level=getattr(logging, cfg.log_level, logging.INFO),
            format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        )

        service = CatalogService(
            CatalogServiceConfig(
                search_timeout=cfg.search_timeout,
                workers=cfg.search_workers,
                heap_size=cfg.index_heap_bytes,
            )
        )
        scheduler = RefreshScheduler(
            service,
            fetcher or FeedFetcher(cfg.feed_url, timeout=cfg.feed_timeout),
            SnapshotStore(cfg.snapshot_path),
            interval=cfg.refresh_interval,
        )
        app.state.catalog = service
        app.state.scheduler = scheduler

        try:
            await scheduler.seed()
            if start_scheduler:
                scheduler.start(seeded=True)
            yield
        finally:
            await scheduler.stop()
            service.close()

    app = FastAPI(
        title="nub-catalog",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        root_path=_env_base_path or "",
    )

    # CORS: allow browser apps hosted on other origins to call this API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(search_router)

    @app.get("/health", tags=["ops"], summary="Health check")
    async def health():
        return {"status": "ok"}

    def _with_servers(base_path: str | None):
        """Return OpenAPI schema optionally annotated with servers -> [{url: base_path}]."""
        schema = app.openapi()
        if base_path and base_path != "/":
            # Copy-on-write: FastAPI caches app.openapi()
            schema = {**schema, "servers": [{"url": base_path}]}
        return schema

    @app.get("/openapi.json", include_in_schema=False)
    def openapi_json():
        return JSONResponse(_with_servers(_env_base_path or None))

    # Relative openapi_url so the UI works behind a subpath proxy.
    @app.get("/docs", include_in_schema=False)
    def swagger_ui():
        return get_swagger_ui_html(openapi_url="openapi.json", title="API Docs")

    return app


app = create_app()
