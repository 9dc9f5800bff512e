"""Health check."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from config.settings import settings
from rugradar.engine.metrics import metrics
from rugradar.version import ENGINE_VERSION

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_sec: int
    cache_backend: str
    pipeline: dict


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    summary = metrics.get_summary()
    return HealthResponse(
        status="ok",
        version=ENGINE_VERSION,
        uptime_sec=summary.get("uptime_sec", 0),
        cache_backend=settings.cache_backend,
        pipeline=summary,
    )
