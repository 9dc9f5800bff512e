"""Composite aggregation and risk classification.

Weighted sum of category ratios, banded into a risk level. Inconsistent
inputs are internal defects: they raise AggregationInvariantError instead
of being clamped into range.
"""

import math
from collections import Counter
from decimal import ROUND_HALF_UP, Decimal

from rugradar.exceptions import AggregationInvariantError
from rugradar.models.report import Category, CategoryScore, Flag, ReportKind, RiskLevel
from rugradar.scoring.weights import CATEGORIES

WEIGHT_TOLERANCE = 1e-9

# (lower bound inclusive, level), checked top down
RISK_BANDS: tuple[tuple[int, RiskLevel], ...] = (
    (80, RiskLevel.LOW),
    (60, RiskLevel.MEDIUM),
    (40, RiskLevel.HIGH),
    (0, RiskLevel.CRITICAL),
)

RECOMMENDATIONS: dict[RiskLevel, str] = {
    RiskLevel.LOW: "✅ LOW RISK - Strong security fundamentals. Always do your own research.",
    RiskLevel.MEDIUM: "⚠️ MODERATE RISK - Acceptable security but review the warnings carefully.",
    RiskLevel.HIGH: "🚨 HIGH RISK - Only invest amounts you can afford to lose. Multiple red flags detected.",
    RiskLevel.CRITICAL: "⛔ EXTREME DANGER - Severe security issues detected. Avoid or risk total loss.",
}


def round_half_up(value: float) -> int:
    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def classify(score: int) -> RiskLevel:
    if not 0 <= score <= 100:
        raise AggregationInvariantError(f"composite score {score} outside [0, 100]")
    for lower, level in RISK_BANDS:
        if score >= lower:
            return level
    raise AggregationInvariantError(f"no risk band for score {score}")


def check_weights(weights: dict[Category, float]) -> None:
    total = sum(weights.values())
    if not math.isclose(total, 1.0, rel_tol=0.0, abs_tol=WEIGHT_TOLERANCE):
        raise AggregationInvariantError(f"category weights sum to {total}, expected 1.0")


def composite_score(kind: ReportKind, scores: dict[Category, CategoryScore]) -> int:
    expected = set(CATEGORIES[kind])
    got = set(scores)
    if got != expected:
        missing = sorted(expected - got)
        unexpected = sorted(got - expected)
        raise AggregationInvariantError(
            f"{kind} report categories mismatch (missing={missing}, unexpected={unexpected})"
        )

    check_weights({c: s.weight for c, s in scores.items()})

    total = 0.0
    for category, s in scores.items():
        if not 0 <= s.score <= s.max_score:
            raise AggregationInvariantError(
                f"{category} score {s.score} outside [0, {s.max_score}]"
            )
        total += s.score / s.max_score * s.weight * 100

    result = round_half_up(total)
    if not 0 <= result <= 100:
        raise AggregationInvariantError(f"composite score {result} outside [0, 100]")
    return result


def main_concern(red_flags: list[Flag]) -> str | None:
    """Category of the dominant red flag: highest severity, then count, then first seen."""
    if not red_flags:
        return None
    counts = Counter(f.category for f in red_flags)
    top_rank: dict[str, int] = {}
    first_seen: dict[str, int] = {}
    for i, flag in enumerate(red_flags):
        top_rank[flag.category] = max(top_rank.get(flag.category, 0), flag.severity.rank)
        first_seen.setdefault(flag.category, i)
    return min(counts, key=lambda c: (-top_rank[c], -counts[c], first_seen[c]))


def recommend(level: RiskLevel, red_flags: list[Flag]) -> str:
    text = RECOMMENDATIONS[level]
    concern = main_concern(red_flags)
    if concern:
        text += f" Main concern: {concern}."
    return text
