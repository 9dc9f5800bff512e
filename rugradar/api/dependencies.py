"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import Request

from rugradar.cache.report_cache import ReportCache


def get_report_cache(request: Request) -> ReportCache:
    """Return the report cache attached to the running app."""
    return request.app.state.report_cache
