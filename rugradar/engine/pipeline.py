"""Analysis pipeline — sources in, immutable Report out.

    PENDING → COLLECTING_SOURCES → NORMALIZING → DETECTING → SCORING
            → FLAGGING → AGGREGATED → COMPLETED | FAILED

Missing sources never fail a run; they degrade it. A run fails only on an
invalid identifier or an internal aggregation defect.
"""

import time
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum

from loguru import logger

from config.settings import settings
from rugradar.detectors.base import DetectorConfig
from rugradar.detectors.runner import run_detectors
from rugradar.engine.collection import collect_sources
from rugradar.engine.metrics import metrics
from rugradar.engine.normalizer import normalize
from rugradar.exceptions import AggregationInvariantError, InvalidIdentifierError
from rugradar.models.metrics import SourceKind
from rugradar.models.report import Report, ReportKind
from rugradar.scoring.aggregator import classify, composite_score, recommend
from rugradar.scoring.composite import score_composite
from rugradar.scoring.flags import FlagContext, generate_flags
from rugradar.scoring.rules import ScoringContext
from rugradar.scoring.security_report import score_security
from rugradar.scoring.thresholds import ScoringThresholds, get_thresholds
from rugradar.sources import Present, SourceCollector, SourceResult, TransactionHistory, pick
from rugradar.utils.addr import validate_address
from rugradar.utils.logger import short


class AnalysisState(StrEnum):
    PENDING = "pending"
    COLLECTING_SOURCES = "collecting_sources"
    NORMALIZING = "normalizing"
    DETECTING = "detecting"
    SCORING = "scoring"
    FLAGGING = "flagging"
    AGGREGATED = "aggregated"
    COMPLETED = "completed"
    FAILED = "failed"


_NEXT: dict[AnalysisState, AnalysisState] = {
    AnalysisState.PENDING: AnalysisState.COLLECTING_SOURCES,
    AnalysisState.COLLECTING_SOURCES: AnalysisState.NORMALIZING,
    AnalysisState.NORMALIZING: AnalysisState.DETECTING,
    AnalysisState.DETECTING: AnalysisState.SCORING,
    AnalysisState.SCORING: AnalysisState.FLAGGING,
    AnalysisState.FLAGGING: AnalysisState.AGGREGATED,
    AnalysisState.AGGREGATED: AnalysisState.COMPLETED,
}

PROGRESS_PCT: dict[AnalysisState, int] = {
    AnalysisState.PENDING: 0,
    AnalysisState.COLLECTING_SOURCES: 10,
    AnalysisState.NORMALIZING: 30,
    AnalysisState.DETECTING: 45,
    AnalysisState.SCORING: 65,
    AnalysisState.FLAGGING: 80,
    AnalysisState.AGGREGATED: 95,
    AnalysisState.COMPLETED: 100,
    AnalysisState.FAILED: 100,
}

ProgressCallback = Callable[[AnalysisState, int, str], None]

TERMINAL_STATES = frozenset({AnalysisState.COMPLETED, AnalysisState.FAILED})


class AnalysisRun:
    """State machine of a single analysis run."""

    def __init__(self, token_id: str, on_progress: ProgressCallback | None = None) -> None:
        self.token_id = token_id
        self.state = AnalysisState.PENDING
        self.history: list[AnalysisState] = [AnalysisState.PENDING]
        self._on_progress = on_progress

    def advance(self, target: AnalysisState, message: str = "") -> None:
        legal = _NEXT.get(self.state) == target or (
            target is AnalysisState.FAILED and self.state not in TERMINAL_STATES
        )
        if not legal:
            raise RuntimeError(f"Illegal transition {self.state} -> {target}")
        self.state = target
        self.history.append(target)
        logger.debug(f"[PIPELINE] {short(self.token_id)}: {target} {message}".rstrip())
        if self._on_progress is not None:
            self._on_progress(target, PROGRESS_PCT[target], message)


def _history(sources: list[SourceResult]) -> TransactionHistory | None:
    result = pick(sources, SourceKind.TRANSACTIONS)
    if isinstance(result, Present):
        return result.payload  # type: ignore[return-value]
    return None


def _run(
    run: AnalysisRun,
    token_id: str,
    sources: list[SourceResult],
    kind: ReportKind,
    *,
    now: float | None,
    thresholds: ScoringThresholds | None,
    detector_config: DetectorConfig | None,
    started: float,
) -> Report:
    metrics.record_run_started(kind)
    try:
        run.advance(AnalysisState.NORMALIZING)
        bundle, _ = normalize(token_id, sources, now=now)

        run.advance(AnalysisState.DETECTING)
        detectors = run_detectors(bundle, _history(sources), detector_config)

        run.advance(AnalysisState.SCORING)
        ctx = ScoringContext(bundle=bundle, detectors=detectors)
        th = thresholds or get_thresholds()
        if kind is ReportKind.SECURITY:
            scores = score_security(ctx, th)
        else:
            scores = score_composite(ctx, th)

        run.advance(AnalysisState.FLAGGING)
        red, green = generate_flags(FlagContext(bundle=bundle, detectors=detectors, scores=scores))

        score = composite_score(kind, scores)
        level = classify(score)
        run.advance(AnalysisState.AGGREGATED, f"score={score} risk={level}")

        elapsed_ms = int((time.monotonic() - started) * 1000)
        report = Report(
            token_address=bundle.token_address,
            token_symbol=bundle.metadata.symbol,
            token_name=bundle.metadata.name,
            kind=kind,
            composite_score=score,
            risk_level=level,
            recommendation=recommend(level, red),
            categories=scores,
            red_flags=red,
            green_flags=green,
            unavailable_sources=bundle.unavailable_sources,
            analyzed_at=datetime.now(UTC),
            analysis_time_ms=elapsed_ms,
        )
    except (InvalidIdentifierError, AggregationInvariantError) as e:
        run.advance(AnalysisState.FAILED, str(e))
        metrics.record_failed(kind)
        raise

    run.advance(AnalysisState.COMPLETED)
    metrics.record_completed(kind, elapsed_ms, report.unavailable_sources)
    logger.info(
        f"[ANALYZE] {short(report.token_address)} ({report.token_symbol}): "
        f"{kind} score={report.composite_score} risk={report.risk_level} "
        f"red={len(red)} green={len(green)} in {elapsed_ms}ms"
        + (f" missing={','.join(report.unavailable_sources)}" if report.unavailable_sources else "")
    )
    return report


def analyze(
    token_id: str,
    sources: list[SourceResult],
    kind: ReportKind = ReportKind.COMPOSITE,
    *,
    now: float | None = None,
    thresholds: ScoringThresholds | None = None,
    detector_config: DetectorConfig | None = None,
    on_progress: ProgressCallback | None = None,
) -> Report:
    """Pure pipeline over already-collected sources.

    Same sources and ``now`` always give the same report content.
    """
    started = time.monotonic()
    run = AnalysisRun(token_id, on_progress)
    run.advance(AnalysisState.COLLECTING_SOURCES, f"{len(sources)} sources provided")
    return _run(
        run,
        token_id,
        sources,
        kind,
        now=now,
        thresholds=thresholds,
        detector_config=detector_config,
        started=started,
    )


class TokenAnalyzer:
    """Collection plus pipeline: the unit of work behind the report cache."""

    def __init__(
        self,
        collectors: list[SourceCollector],
        *,
        thresholds: ScoringThresholds | None = None,
        detector_config: DetectorConfig | None = None,
    ) -> None:
        self._collectors = collectors
        self._thresholds = thresholds
        self._detector_config = detector_config

    async def analyze(
        self,
        token_id: str,
        deadline_ms: int | None = None,
        kind: ReportKind = ReportKind.COMPOSITE,
        on_progress: ProgressCallback | None = None,
    ) -> Report:
        started = time.monotonic()
        run = AnalysisRun(token_id, on_progress)
        try:
            address = validate_address(token_id)
        except InvalidIdentifierError as e:
            run.advance(AnalysisState.FAILED, str(e))
            raise

        deadline_ms = settings.collection_deadline_ms if deadline_ms is None else deadline_ms
        run.advance(
            AnalysisState.COLLECTING_SOURCES,
            f"{len(self._collectors)} collectors, deadline {deadline_ms}ms",
        )
        sources = await collect_sources(address, self._collectors, deadline_ms / 1000)

        return _run(
            run,
            address,
            sources,
            kind,
            now=None,
            thresholds=self._thresholds,
            detector_config=self._detector_config,
            started=started,
        )
