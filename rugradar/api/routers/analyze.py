"""Token analysis endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from pydantic import BaseModel, Field

from rugradar.api.dependencies import get_report_cache
from rugradar.cache.report_cache import ReportCache
from rugradar.exceptions import AggregationInvariantError, InvalidIdentifierError
from rugradar.models.report import Report, ReportKind

router = APIRouter(prefix="/api/v1", tags=["analyze"])


class AnalyzeRequest(BaseModel):
    token_address: str = Field(max_length=128)
    force_refresh: bool = False
    kind: ReportKind = ReportKind.COMPOSITE
    deadline_ms: int | None = Field(default=None, ge=100, le=60_000)

    model_config = {"extra": "ignore"}


class AnalyzeResponse(BaseModel):
    success: bool = True
    report: Report
    cached: bool


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_token(
    body: AnalyzeRequest,
    cache: ReportCache = Depends(get_report_cache),
) -> AnalyzeResponse:
    """Analyze a token, serving a cached report when one is fresh."""
    try:
        result = await cache.fetch(
            body.token_address,
            force_refresh=body.force_refresh,
            deadline_ms=body.deadline_ms,
            kind=body.kind,
        )
    except InvalidIdentifierError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid token address: {e.reason}",
        ) from e
    except AggregationInvariantError as e:
        logger.error(f"[API] Aggregation invariant violated for {body.token_address}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal scoring error",
        ) from e

    return AnalyzeResponse(report=result.report, cached=result.cached)
