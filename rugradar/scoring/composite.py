"""Composite report scorers — Security, Fundamentals, Technical Analysis,
Sentiment, Innovation. Every category is scored out of 100.
"""

from rugradar.models.metrics import SourceKind
from rugradar.models.report import Category, CategoryScore
from rugradar.scoring.rules import (
    CheckRule,
    Component,
    DetectorRule,
    ScoringContext,
    TierRule,
    score_category,
)
from rugradar.scoring.thresholds import ScoringThresholds
from rugradar.scoring.weights import COMPOSITE_CATEGORIES

LIQ = SourceKind.LIQUIDITY
HOLD = SourceKind.HOLDERS
MKT = SourceKind.MARKET
CON = SourceKind.CONTRACT
SIM = SourceKind.SIMULATION
META = SourceKind.METADATA


def _volume_liquidity_ratio(ctx: ScoringContext) -> float:
    liquidity = ctx.bundle.liquidity.liquidity_usd
    if liquidity <= 0:
        return 0.0
    return ctx.bundle.market.volume_24h / liquidity


def _sell_buy_ratio(ctx: ScoringContext) -> float:
    market = ctx.bundle.market
    return market.sells_24h / max(market.buys_24h, 1)


def _security(th: ScoringThresholds) -> tuple[Component, ...]:
    return (
        Component(
            "Mint authority",
            15,
            CheckRule(lambda c: c.bundle.contract.is_mintable, "Mint authority enabled"),
            CON,
        ),
        Component(
            "Freeze authority",
            10,
            CheckRule(lambda c: c.bundle.contract.has_freeze_authority, "Freeze authority enabled"),
            CON,
        ),
        Component(
            "Ownership",
            10,
            CheckRule(lambda c: not c.bundle.contract.renounced, "Ownership not renounced"),
            CON,
        ),
        Component(
            "Blacklist",
            10,
            CheckRule(lambda c: c.bundle.contract.has_blacklist, "Blacklist function present"),
            CON,
        ),
        Component(
            "Proxy",
            5,
            CheckRule(lambda c: c.bundle.contract.is_proxy, "Upgradeable proxy contract"),
            CON,
        ),
        Component(
            "LP burned",
            10,
            CheckRule(lambda c: not c.bundle.liquidity.lp_burned, "LP tokens not burned"),
            LIQ,
        ),
        Component(
            "LP locked",
            10,
            CheckRule(lambda c: not c.bundle.liquidity.lp_locked, "LP tokens not locked"),
            LIQ,
        ),
        Component(
            "Honeypot",
            20,
            DetectorRule(
                lambda d: d.honeypot,
                lambda r: "Honeypot detected" if r.is_honeypot else None,
            ),
        ),
        Component(
            "Sell tax",
            10,
            TierRule(lambda c: c.bundle.simulation.sell_tax, th.security_sell_tax),
            SIM,
        ),
    )


def _fundamentals(th: ScoringThresholds) -> tuple[Component, ...]:
    return (
        Component(
            "Liquidity",
            35,
            TierRule(lambda c: c.bundle.liquidity.liquidity_usd, th.fundamentals_liquidity_usd),
            LIQ,
        ),
        Component(
            "Holder count",
            25,
            TierRule(lambda c: c.bundle.holders.total_holders, th.fundamentals_holder_count),
            HOLD,
        ),
        Component(
            "Top 10 concentration",
            20,
            TierRule(lambda c: c.bundle.holders.top10_pct, th.fundamentals_top10_pct),
            HOLD,
        ),
        Component(
            "Creator share",
            10,
            TierRule(lambda c: c.bundle.holders.creator_pct, th.fundamentals_creator_pct),
            HOLD,
        ),
        Component(
            "Token age",
            10,
            TierRule(lambda c: c.bundle.market.age_days, th.fundamentals_age_days),
            MKT,
        ),
    )


def _technical(th: ScoringThresholds) -> tuple[Component, ...]:
    return (
        Component(
            "Bundles",
            20,
            DetectorRule(
                lambda d: d.bundle,
                lambda r: f"{r.bundle_count} coordinated buy bundle(s)" if r.bundle_count else None,
            ),
        ),
        Component(
            "Snipers",
            20,
            DetectorRule(
                lambda d: d.sniper,
                lambda r: f"{r.sniper_count} sniper wallets" if r.sniper_count else None,
            ),
        ),
        Component(
            "Wash trading",
            20,
            DetectorRule(
                lambda d: d.wash_trading,
                lambda r: "Wash trading detected" if r.is_wash_trading else None,
            ),
        ),
        Component(
            "Can sell",
            25,
            DetectorRule(
                lambda d: d.honeypot,
                lambda r: None if r.can_sell else "Can sell: ⛔ NO",
            ),
        ),
        Component(
            "Pump and dump",
            15,
            CheckRule(
                lambda c: c.bundle.market.is_pump_and_dump,
                "Pump-and-dump pattern (new token, extreme activity)",
            ),
            MKT,
        ),
    )


def _sentiment(th: ScoringThresholds) -> tuple[Component, ...]:
    return (
        Component(
            "Website",
            20,
            CheckRule(lambda c: not c.bundle.metadata.has_website, "No website"),
            META,
        ),
        Component(
            "Socials",
            20,
            CheckRule(lambda c: not c.bundle.metadata.has_socials, "No social links"),
            META,
        ),
        Component(
            "Volume / liquidity",
            20,
            TierRule(_volume_liquidity_ratio, th.volume_liquidity_ratio),
            MKT,
        ),
        Component(
            "Sell / buy ratio",
            20,
            TierRule(_sell_buy_ratio, th.sell_buy_ratio),
            MKT,
        ),
        Component(
            "Price change 24h",
            20,
            TierRule(lambda c: abs(c.bundle.market.price_change_24h), th.price_change_abs_pct),
            MKT,
        ),
    )


def _innovation(th: ScoringThresholds) -> tuple[Component, ...]:
    return (
        Component(
            "Verification",
            30,
            CheckRule(lambda c: not c.bundle.metadata.verified, "Token not verified"),
            META,
        ),
        Component(
            "Originality",
            25,
            CheckRule(lambda c: c.bundle.contract.is_copycat, "Copycat of an existing token"),
            CON,
        ),
        Component(
            "Description",
            20,
            CheckRule(lambda c: not c.bundle.metadata.has_description, "No project description"),
            META,
        ),
        Component(
            "Metadata mutability",
            15,
            CheckRule(lambda c: c.bundle.contract.mutable_metadata, "Metadata is mutable"),
            CON,
        ),
        Component(
            "Image",
            10,
            CheckRule(lambda c: not c.bundle.metadata.has_image, "No token image"),
            META,
        ),
    )


_BUILDERS = {
    Category.SECURITY: _security,
    Category.FUNDAMENTALS: _fundamentals,
    Category.TECHNICAL_ANALYSIS: _technical,
    Category.SENTIMENT: _sentiment,
    Category.INNOVATION: _innovation,
}


def score_composite(ctx: ScoringContext, thresholds: ScoringThresholds) -> dict[Category, CategoryScore]:
    return {
        category: score_category(
            category,
            _BUILDERS[category](thresholds),
            ctx,
            max_score=max_score,
            weight=weight,
        )
        for category, (max_score, weight) in COMPOSITE_CATEGORIES.items()
    }
