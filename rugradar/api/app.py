"""FastAPI application factory for the analysis API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from config.settings import settings
from rugradar.cache.report_cache import ReportCache
from rugradar.cache.store import RedisCacheStore, build_store
from rugradar.engine.pipeline import TokenAnalyzer
from rugradar.version import ENGINE_VERSION


def create_app(report_cache: ReportCache | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Without an explicit cache the app analyzes with no collectors attached,
    so every report is degraded until collectors are wired in.
    """
    if report_cache is None:
        report_cache = ReportCache(TokenAnalyzer([]), build_store())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        store = report_cache.store
        if isinstance(store, RedisCacheStore):
            await store.close()
            logger.info("Redis report store closed")

    app = FastAPI(
        title="Rug Radar API",
        version=ENGINE_VERSION,
        docs_url="/api/docs" if settings.api_debug else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.api_debug else None,
        lifespan=lifespan,
    )
    app.state.report_cache = report_cache

    from rugradar.api.routers.analyze import router as analyze_router
    from rugradar.api.routers.health import router as health_router

    app.include_router(health_router)
    app.include_router(analyze_router)

    return app
