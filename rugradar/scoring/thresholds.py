"""Tier tables used by the scorers, overridable from a JSON file.

Each field is a ThresholdTable; an override replaces whole tables by name
and is validated the same way as the defaults (monotonic bounds, no
deduction above the component budget).
"""

import json
from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import BaseModel

from config.settings import settings
from rugradar.scoring.rules import Direction, ThresholdTable, Tier

AT_LEAST = Direction.AT_LEAST
AT_MOST = Direction.AT_MOST


def _table(
    budget: int,
    direction: Direction,
    tiers: list[tuple[float, int, str]],
    fallback: str,
) -> ThresholdTable:
    return ThresholdTable(
        budget=budget,
        direction=direction,
        tiers=[Tier(bound=b, deduction=d, finding=f) for b, d, f in tiers],
        fallback_deduction=budget,
        fallback_finding=fallback,
    )


class ScoringThresholds(BaseModel):
    # --- security report ---
    liquidity_sol: ThresholdTable = _table(
        10,
        AT_LEAST,
        [
            (100, 0, ""),
            (50, 2, "Liquidity {value:.1f} SOL is moderate"),
            (20, 4, "Low liquidity: {value:.1f} SOL"),
            (5, 7, "Very low liquidity: {value:.1f} SOL"),
        ],
        "Critically low liquidity: {value:.1f} SOL",
    )
    liquidity_usd: ThresholdTable = _table(
        4,
        AT_LEAST,
        [
            (50_000, 0, ""),
            (10_000, 1, "Liquidity ${value:,.0f} below $50k"),
            (1_000, 3, "Liquidity ${value:,.0f} below $10k"),
        ],
        "Liquidity ${value:,.0f} below $1k",
    )
    top10_pct: ThresholdTable = _table(
        8,
        AT_MOST,
        [
            (30, 0, ""),
            (50, 2, "Top 10 holders own {value:.1f}%"),
            (70, 5, "High concentration: top 10 own {value:.1f}%"),
        ],
        "Extreme concentration: top 10 own {value:.1f}%",
    )
    creator_pct: ThresholdTable = _table(
        6,
        AT_MOST,
        [
            (10, 0, ""),
            (20, 2, "Creator holds {value:.1f}%"),
            (30, 4, "Creator holds a large share: {value:.1f}%"),
        ],
        "Creator holds {value:.1f}% of supply",
    )
    holder_count: ThresholdTable = _table(
        3,
        AT_LEAST,
        [
            (1000, 0, ""),
            (100, 1, "Only {value:.0f} holders"),
            (10, 2, "Very few holders: {value:.0f}"),
        ],
        "Almost no holders: {value:.0f}",
    )
    age_days: ThresholdTable = _table(
        6,
        AT_LEAST,
        [
            (30, 0, ""),
            (7, 2, "Young token: {value:.1f} days old"),
            (1, 4, "Very new token: {value:.1f} days old"),
        ],
        "Token is less than a day old",
    )
    contract_sell_tax: ThresholdTable = _table(
        2,
        AT_MOST,
        [
            (5, 0, ""),
            (10, 1, "Sell tax {value:.1f}%"),
        ],
        "High sell tax: {value:.1f}%",
    )

    # --- composite report ---
    security_sell_tax: ThresholdTable = _table(
        10,
        AT_MOST,
        [
            (1, 0, ""),
            (5, 3, "Sell tax {value:.1f}%"),
            (10, 6, "Elevated sell tax: {value:.1f}%"),
        ],
        "High sell tax: {value:.1f}%",
    )
    fundamentals_liquidity_usd: ThresholdTable = _table(
        35,
        AT_LEAST,
        [
            (100_000, 0, ""),
            (50_000, 5, "Liquidity ${value:,.0f} below $100k"),
            (10_000, 15, "Liquidity ${value:,.0f} below $50k"),
            (1_000, 25, "Thin liquidity: ${value:,.0f}"),
        ],
        "Liquidity ${value:,.0f} below $1k",
    )
    fundamentals_holder_count: ThresholdTable = _table(
        25,
        AT_LEAST,
        [
            (1000, 0, ""),
            (500, 5, "{value:.0f} holders"),
            (100, 12, "Only {value:.0f} holders"),
            (10, 20, "Very few holders: {value:.0f}"),
        ],
        "Almost no holders: {value:.0f}",
    )
    fundamentals_top10_pct: ThresholdTable = _table(
        20,
        AT_MOST,
        [
            (30, 0, ""),
            (50, 5, "Top 10 holders own {value:.1f}%"),
            (70, 12, "High concentration: top 10 own {value:.1f}%"),
        ],
        "Extreme concentration: top 10 own {value:.1f}%",
    )
    fundamentals_creator_pct: ThresholdTable = _table(
        10,
        AT_MOST,
        [
            (10, 0, ""),
            (20, 3, "Creator holds {value:.1f}%"),
            (30, 6, "Creator holds a large share: {value:.1f}%"),
        ],
        "Creator holds {value:.1f}% of supply",
    )
    fundamentals_age_days: ThresholdTable = _table(
        10,
        AT_LEAST,
        [
            (30, 0, ""),
            (7, 3, "Young token: {value:.1f} days old"),
            (1, 6, "Very new token: {value:.1f} days old"),
        ],
        "Token is less than a day old",
    )
    volume_liquidity_ratio: ThresholdTable = _table(
        20,
        AT_LEAST,
        [
            (1.0, 0, ""),
            (0.25, 5, "Moderate trading activity (volume/liquidity {value:.2f})"),
            (0.05, 12, "Low trading activity (volume/liquidity {value:.2f})"),
        ],
        "Almost no trading activity (volume/liquidity {value:.2f})",
    )
    sell_buy_ratio: ThresholdTable = _table(
        20,
        AT_LEAST,
        [
            (0.5, 0, ""),
            (0.25, 5, "Few sells relative to buys ({value:.2f})"),
            (0.1, 12, "Very few sells relative to buys ({value:.2f})"),
        ],
        "Almost nobody sells ({value:.2f} sells per buy)",
    )
    price_change_abs_pct: ThresholdTable = _table(
        20,
        AT_MOST,
        [
            (50, 0, ""),
            (100, 5, "Volatile: {value:.0f}% move in 24h"),
            (300, 12, "Very volatile: {value:.0f}% move in 24h"),
        ],
        "Extreme price swing: {value:.0f}% in 24h",
    )

    model_config = {"frozen": True}


def load_thresholds(path: str | Path | None = None) -> ScoringThresholds:
    """Defaults merged with an optional JSON override (whole tables by name).

    Raises pydantic.ValidationError on an invalid table and ValueError on
    unknown table names or a table whose budget differs from the default.
    """
    defaults = ScoringThresholds()
    if not path:
        return defaults

    override = json.loads(Path(path).read_text(encoding="utf-8"))
    unknown = set(override) - set(ScoringThresholds.model_fields)
    if unknown:
        raise ValueError(f"Unknown threshold tables: {', '.join(sorted(unknown))}")

    merged = defaults.model_dump()
    merged.update(override)
    thresholds = ScoringThresholds.model_validate(merged)

    # Budgets are fixed by the scorers; only bounds, deductions and findings move
    for name in override:
        budget = getattr(thresholds, name).budget
        expected = getattr(defaults, name).budget
        if budget != expected:
            raise ValueError(f"Threshold table {name}: budget {budget} != {expected}")

    logger.info(f"[THRESHOLDS] Loaded {len(override)} override table(s) from {path}")
    return thresholds


@lru_cache(maxsize=1)
def get_thresholds() -> ScoringThresholds:
    return load_thresholds(settings.scoring_thresholds_path)
