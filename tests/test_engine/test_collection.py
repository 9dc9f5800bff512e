"""Tests for deadline-bounded source collection and pipeline metrics."""

import asyncio

import pytest

from rugradar.engine.collection import collect_sources
from rugradar.engine.metrics import PipelineMetrics
from rugradar.models.metrics import SourceKind
from rugradar.sources import Present, Unavailable
from tests.factories import MINT, clean_holders, clean_liquidity


class StubCollector:
    def __init__(self, kind: SourceKind, result=None, *, delay: float = 0.0, error=None) -> None:
        self.kind = kind
        self._result = result
        self._delay = delay
        self._error = error

    async def fetch(self, token_address: str):
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._result


@pytest.mark.asyncio
async def test_no_collectors():
    assert await collect_sources(MINT, [], 1.0) == []


@pytest.mark.asyncio
async def test_results_keep_collector_order():
    collectors = [
        StubCollector(SourceKind.HOLDERS, clean_holders(), delay=0.02),
        StubCollector(SourceKind.LIQUIDITY, clean_liquidity()),
    ]
    results = await collect_sources(MINT, collectors, 1.0)
    assert [r.kind for r in results] == [SourceKind.HOLDERS, SourceKind.LIQUIDITY]
    assert all(isinstance(r, Present) for r in results)


@pytest.mark.asyncio
async def test_deadline_marks_slow_source_timeout():
    collectors = [
        StubCollector(SourceKind.LIQUIDITY, clean_liquidity()),
        StubCollector(SourceKind.HOLDERS, clean_holders(), delay=5.0),
    ]
    results = await collect_sources(MINT, collectors, 0.05)
    assert isinstance(results[0], Present)
    assert results[1] == Unavailable(SourceKind.HOLDERS, "timeout")


@pytest.mark.asyncio
async def test_collector_error_is_unavailable():
    collectors = [
        StubCollector(SourceKind.MARKET, error=ConnectionError("dexscreener 503")),
        StubCollector(SourceKind.CONTRACT, error=RuntimeError()),
    ]
    results = await collect_sources(MINT, collectors, 1.0)
    assert results == [
        Unavailable(SourceKind.MARKET, "dexscreener 503"),
        Unavailable(SourceKind.CONTRACT, "RuntimeError"),
    ]


@pytest.mark.asyncio
async def test_payload_of_wrong_type_is_unavailable():
    collectors = [StubCollector(SourceKind.LIQUIDITY, clean_holders())]
    results = await collect_sources(MINT, collectors, 1.0)
    assert isinstance(results[0], Unavailable)
    assert results[0].reason.startswith("invalid payload")


class TestPipelineMetrics:
    def test_initial_state(self) -> None:
        m = PipelineMetrics()
        summary = m.get_summary()
        assert summary["cache"] == {"hits": 0, "misses": 0, "coalesced": 0, "hit_rate_pct": 0.0}
        assert summary["kinds"] == {}

    def test_runs_and_latency(self) -> None:
        m = PipelineMetrics()
        m.record_run_started("composite")
        m.record_completed("composite", 100.0)
        m.record_run_started("composite")
        m.record_completed("composite", 300.0, ["holders"])
        m.record_run_started("security")
        m.record_failed("security")

        summary = m.get_summary()
        composite = summary["kinds"]["composite"]
        assert composite["runs"] == 2
        assert composite["completed"] == 2
        assert composite["degraded"] == 1
        assert composite["avg_latency_ms"] == 200
        assert composite["max_latency_ms"] == 300
        assert summary["kinds"]["security"]["failed"] == 1
        assert summary["unavailable_sources"] == {"holders": 1}

    def test_cache_hit_rate(self) -> None:
        m = PipelineMetrics()
        m.record_cache_hit()
        m.record_cache_hit()
        m.record_cache_hit()
        m.record_cache_miss()
        m.record_coalesced()
        cache = m.get_summary()["cache"]
        assert cache["hit_rate_pct"] == 75.0
        assert cache["coalesced"] == 1

    def test_stats_line(self) -> None:
        m = PipelineMetrics()
        m.record_detector_failure("sniper")
        line = m.format_stats_line()
        assert "detector_failures=1" in line
