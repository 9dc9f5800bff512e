"""Idempotent report access: cache first, single-flight compute on miss.

- identifier validated before the cache is touched
- a stored, non-expired report is served without running the pipeline
- concurrent requests for the same key share one computation (forced
  refreshes included)
- store failures degrade to a cache miss, never to a failed request
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from config.settings import settings
from rugradar.cache.keys import report_key
from rugradar.cache.single_flight import SingleFlight
from rugradar.cache.store import CacheStore, MemoryCacheStore
from rugradar.engine.metrics import metrics
from rugradar.models.report import Report, ReportKind
from rugradar.utils.addr import validate_address
from rugradar.utils.logger import short

ReportSink = Callable[[Report], Awaitable[None]]


class Analyzer(Protocol):
    async def analyze(
        self, token_id: str, deadline_ms: int | None = None, kind: ReportKind = ReportKind.COMPOSITE
    ) -> Report: ...


@dataclass(frozen=True)
class CachedReport:
    report: Report
    cached: bool  # served from the store
    coalesced: bool = False  # joined another caller's computation


class ReportCache:
    def __init__(
        self,
        analyzer: Analyzer,
        store: CacheStore | None = None,
        *,
        ttl_sec: int | None = None,
        prefix: str | None = None,
        on_report: ReportSink | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._store: CacheStore = store if store is not None else MemoryCacheStore()
        self._ttl = settings.report_cache_ttl_sec if ttl_sec is None else ttl_sec
        self._prefix = prefix or settings.report_cache_prefix
        self._on_report = on_report
        self._flight: SingleFlight[Report] = SingleFlight()

    @property
    def store(self) -> CacheStore:
        return self._store

    def key_for(self, token_id: str, kind: ReportKind = ReportKind.COMPOSITE) -> str:
        return report_key(self._prefix, kind, validate_address(token_id))

    async def fetch(
        self,
        token_id: str,
        force_refresh: bool = False,
        deadline_ms: int | None = None,
        kind: ReportKind = ReportKind.COMPOSITE,
    ) -> CachedReport:
        address = validate_address(token_id)
        key = report_key(self._prefix, kind, address)

        if not force_refresh:
            cached = await self._safe_get(key)
            if cached is not None:
                metrics.record_cache_hit()
                logger.debug(f"[CACHE] hit {short(address)} ({kind})")
                return CachedReport(cached, cached=True)
            metrics.record_cache_miss()

        report, joined = await self._flight.do(
            key, lambda: self._compute(address, key, deadline_ms, kind)
        )
        if joined:
            metrics.record_coalesced()
            logger.debug(f"[CACHE] joined in-flight analysis for {short(address)} ({kind})")
        return CachedReport(report, cached=False, coalesced=joined)

    async def get_or_compute(
        self,
        token_id: str,
        force_refresh: bool = False,
        deadline_ms: int | None = None,
        kind: ReportKind = ReportKind.COMPOSITE,
    ) -> Report:
        result = await self.fetch(token_id, force_refresh, deadline_ms, kind)
        return result.report

    async def invalidate(self, token_id: str, kind: ReportKind = ReportKind.COMPOSITE) -> None:
        key = self.key_for(token_id, kind)
        try:
            await self._store.delete(key)
        except Exception as e:
            logger.warning(f"[CACHE] delete failed for {key}: {e}")

    async def _compute(
        self, address: str, key: str, deadline_ms: int | None, kind: ReportKind
    ) -> Report:
        report = await self._analyzer.analyze(address, deadline_ms, kind)
        await self._safe_set(key, report)
        if self._on_report is not None:
            try:
                await self._on_report(report)
            except Exception as e:
                logger.warning(f"[CACHE] report sink failed for {short(address)}: {e}")
        return report

    async def _safe_get(self, key: str) -> Report | None:
        try:
            return await self._store.get(key)
        except Exception as e:
            logger.warning(f"[CACHE] read failed for {key}, treating as miss: {e}")
            return None

    async def _safe_set(self, key: str, report: Report) -> None:
        try:
            await self._store.set(key, report, self._ttl)
        except Exception as e:
            logger.warning(f"[CACHE] write failed for {key}: {e}")
