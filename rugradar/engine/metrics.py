"""Analysis pipeline metrics — latency, outcomes, cache efficiency.

Thread-safe counters that accumulate during runtime and are read by the
health endpoint. Detectors may run in worker threads, hence the lock.
"""

import time
from collections import Counter
from dataclasses import dataclass
from threading import Lock


@dataclass
class KindMetrics:
    """Metrics for one report kind."""

    total_runs: int = 0
    completed: int = 0
    failed: int = 0
    degraded: int = 0  # completed with at least one unavailable source
    total_latency_ms: float = 0.0
    max_latency_ms: float = 0.0

    @property
    def avg_latency_ms(self) -> float:
        if self.completed == 0:
            return 0.0
        return self.total_latency_ms / self.completed


class PipelineMetrics:
    """Global metrics accumulator for analysis runs and the report cache."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._kinds: dict[str, KindMetrics] = {}
        self._cache_hits = 0
        self._cache_misses = 0
        self._coalesced = 0
        self._detector_failures: Counter[str] = Counter()
        self._unavailable_sources: Counter[str] = Counter()
        self._start_time = time.monotonic()

    def _get_kind(self, kind: str) -> KindMetrics:
        if kind not in self._kinds:
            self._kinds[kind] = KindMetrics()
        return self._kinds[kind]

    def record_run_started(self, kind: str) -> None:
        with self._lock:
            self._get_kind(kind).total_runs += 1

    def record_completed(
        self, kind: str, latency_ms: float, unavailable: list[str] | None = None
    ) -> None:
        """Record a completed run (degraded when sources were missing)."""
        with self._lock:
            km = self._get_kind(kind)
            km.completed += 1
            km.total_latency_ms += latency_ms
            if latency_ms > km.max_latency_ms:
                km.max_latency_ms = latency_ms
            if unavailable:
                km.degraded += 1
                self._unavailable_sources.update(unavailable)

    def record_failed(self, kind: str) -> None:
        with self._lock:
            self._get_kind(kind).failed += 1

    def record_detector_failure(self, detector: str) -> None:
        with self._lock:
            self._detector_failures[detector] += 1

    def record_cache_hit(self) -> None:
        with self._lock:
            self._cache_hits += 1

    def record_cache_miss(self) -> None:
        with self._lock:
            self._cache_misses += 1

    def record_coalesced(self) -> None:
        """A caller joined an in-flight computation instead of starting one."""
        with self._lock:
            self._coalesced += 1

    def get_summary(self) -> dict:
        """Return a snapshot of all metrics."""
        with self._lock:
            lookups = self._cache_hits + self._cache_misses
            summary: dict = {
                "uptime_sec": round(time.monotonic() - self._start_time),
                "cache": {
                    "hits": self._cache_hits,
                    "misses": self._cache_misses,
                    "coalesced": self._coalesced,
                    "hit_rate_pct": round(self._cache_hits / lookups * 100, 1) if lookups else 0.0,
                },
                "detector_failures": dict(self._detector_failures),
                "unavailable_sources": dict(self._unavailable_sources),
                "kinds": {},
            }
            for name, km in self._kinds.items():
                summary["kinds"][name] = {
                    "runs": km.total_runs,
                    "completed": km.completed,
                    "failed": km.failed,
                    "degraded": km.degraded,
                    "avg_latency_ms": round(km.avg_latency_ms),
                    "max_latency_ms": round(km.max_latency_ms),
                }
            return summary

    def format_stats_line(self) -> str:
        """One-line summary for periodic logging."""
        with self._lock:
            runs = sum(km.total_runs for km in self._kinds.values())
            failed = sum(km.failed for km in self._kinds.values())
            return (
                f"runs={runs} failed={failed} "
                f"cache_hits={self._cache_hits} misses={self._cache_misses} "
                f"coalesced={self._coalesced} "
                f"detector_failures={sum(self._detector_failures.values())}"
            )


# Global singleton — imported by the pipeline, the cache and the health router
metrics = PipelineMetrics()
