"""Declarative scoring rules.

A category is a table of components. Each component owns a point budget and
one rule variant; applying it yields at most one deduction, always paired
with the finding that explains it:

- ``TierRule``     — looks a metric up in a monotonic threshold table
- ``CheckRule``    — deducts the whole budget when a predicate holds
- ``DetectorRule`` — reads a detector result; not-evaluated detectors
                     deduct the whole budget

A component bound to a source that is unavailable deducts its whole budget
as "insufficient data" instead of being scored as safe.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, model_validator

from rugradar.detectors.base import DetectorStatus
from rugradar.detectors.runner import DetectorResults
from rugradar.exceptions import AggregationInvariantError
from rugradar.models.metrics import MetricsBundle, SourceKind
from rugradar.models.report import Category, CategoryScore


class Direction(StrEnum):
    AT_LEAST = "at_least"  # higher is better
    AT_MOST = "at_most"  # lower is better


class Tier(BaseModel):
    bound: float
    deduction: int
    finding: str = ""  # may reference {value}

    model_config = {"frozen": True}


class ThresholdTable(BaseModel):
    """Monotonic tiers ordered best first, plus a fallback for values past the last tier."""

    budget: int
    direction: Direction
    tiers: list[Tier]
    fallback_deduction: int
    fallback_finding: str

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_monotonic(self) -> ThresholdTable:
        bounds = [t.bound for t in self.tiers]
        if self.direction is Direction.AT_LEAST:
            ordered = all(a > b for a, b in zip(bounds, bounds[1:]))
        else:
            ordered = all(a < b for a, b in zip(bounds, bounds[1:]))
        if not ordered:
            raise ValueError(f"tier bounds must be strictly monotonic ({self.direction}): {bounds}")

        deductions = [t.deduction for t in self.tiers] + [self.fallback_deduction]
        if any(d < 0 for d in deductions):
            raise ValueError("deductions must be non-negative")
        if any(a > b for a, b in zip(deductions, deductions[1:])):
            raise ValueError(f"deductions must not decrease towards worse tiers: {deductions}")
        if max(deductions) > self.budget:
            raise ValueError(f"deduction {max(deductions)} exceeds budget {self.budget}")
        return self

    def lookup(self, value: float) -> tuple[int, str]:
        for tier in self.tiers:
            hit = value >= tier.bound if self.direction is Direction.AT_LEAST else value <= tier.bound
            if hit:
                return tier.deduction, tier.finding.format(value=value)
        return self.fallback_deduction, self.fallback_finding.format(value=value)


@dataclass(frozen=True)
class ScoringContext:
    """Everything a scorer may read: the bundle and the detector outputs."""

    bundle: MetricsBundle
    detectors: DetectorResults


def bundled_wallets(bundle: MetricsBundle, detectors: DetectorResults) -> int:
    """Bundled wallets reported by the holders source or found by the bundle detector."""
    found = detectors.bundle.bundle_bots if detectors.bundle.evaluated else 0
    return max(bundle.holders.bundle_wallets, found)


@dataclass(frozen=True)
class TierRule:
    metric: Callable[[ScoringContext], float]
    table: ThresholdTable


@dataclass(frozen=True)
class CheckRule:
    predicate: Callable[[ScoringContext], bool]
    finding: str


@dataclass(frozen=True)
class DetectorRule:
    detector: Callable[[DetectorResults], Any]
    # Returns the finding when the detector result warrants the full deduction
    evaluate: Callable[[Any], str | None]


Rule = TierRule | CheckRule | DetectorRule


@dataclass(frozen=True)
class Component:
    name: str
    points: int
    rule: Rule
    source: SourceKind | None = None

    def __post_init__(self) -> None:
        if self.points <= 0:
            raise ValueError(f"{self.name}: points must be positive")
        if isinstance(self.rule, TierRule) and self.rule.table.budget != self.points:
            raise AggregationInvariantError(
                f"{self.name}: table budget {self.rule.table.budget} != component points {self.points}"
            )


@dataclass(frozen=True)
class Deduction:
    points: int
    finding: str
    insufficient: bool = False  # source missing or detector not evaluated


def apply(component: Component, ctx: ScoringContext) -> Deduction | None:
    """Apply one component. Returns None when nothing is deducted."""
    if component.source is not None and not ctx.bundle.is_available(component.source):
        return Deduction(
            component.points,
            f"{component.name}: insufficient data ({component.source} source unavailable)",
            insufficient=True,
        )

    match component.rule:
        case TierRule(metric=metric, table=table):
            points, finding = table.lookup(metric(ctx))
            if points == 0:
                return None
            return Deduction(points, finding or component.name)
        case CheckRule(predicate=predicate, finding=finding):
            if predicate(ctx):
                return Deduction(component.points, finding)
            return None
        case DetectorRule(detector=detector, evaluate=evaluate):
            result = detector(ctx.detectors)
            if result.status is DetectorStatus.NOT_EVALUATED:
                reason = f" ({result.reason})" if result.reason else ""
                return Deduction(
                    component.points, f"{component.name}: not evaluated{reason}", insufficient=True
                )
            finding = evaluate(result)
            if finding is None:
                return None
            return Deduction(component.points, finding)
        case _:
            raise TypeError(f"Unknown rule variant: {type(component.rule).__name__}")


@dataclass(frozen=True)
class Cap:
    """Post-rule ceiling on a category score (e.g. a source-level risk rating)."""

    applies: Callable[[ScoringContext], bool]
    max_points: int
    finding: str


def score_category(
    category: Category,
    components: tuple[Component, ...],
    ctx: ScoringContext,
    *,
    max_score: int,
    weight: float,
    caps: tuple[Cap, ...] = (),
) -> CategoryScore:
    budget = sum(c.points for c in components)
    if budget != max_score:
        raise AggregationInvariantError(
            f"{category}: component budgets sum to {budget}, expected {max_score}"
        )

    deductions: list[Deduction] = []
    insufficient = False
    for component in components:
        deduction = apply(component, ctx)
        if deduction is None:
            continue
        deductions.append(deduction)
        insufficient = insufficient or deduction.insufficient

    score = max_score - sum(d.points for d in deductions)

    for cap in caps:
        if score > cap.max_points and cap.applies(ctx):
            deductions.append(Deduction(score - cap.max_points, cap.finding))
            score = cap.max_points

    return CategoryScore(
        category=category,
        score=score,
        max_score=max_score,
        weight=weight,
        findings=[d.finding for d in deductions],
        insufficient_data=insufficient,
    )
