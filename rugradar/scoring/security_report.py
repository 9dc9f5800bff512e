"""Security report scorers — Liquidity, Holders, Market, Trading, Contract.

Narrow report focused on rug-pull mechanics. Each category is a component
table; budgets add up to the category's max score.
"""

from rugradar.models.metrics import SourceKind
from rugradar.models.report import Category, CategoryScore, RiskLevel
from rugradar.scoring.rules import (
    Cap,
    CheckRule,
    Component,
    DetectorRule,
    ScoringContext,
    TierRule,
    bundled_wallets,
    score_category,
)
from rugradar.scoring.thresholds import ScoringThresholds
from rugradar.scoring.weights import SECURITY_CATEGORIES

LIQ = SourceKind.LIQUIDITY
HOLD = SourceKind.HOLDERS
MKT = SourceKind.MARKET
CON = SourceKind.CONTRACT
SIM = SourceKind.SIMULATION


def _components(th: ScoringThresholds) -> dict[Category, tuple[Component, ...]]:
    return {
        Category.LIQUIDITY: (
            Component(
                "SOL depth",
                10,
                TierRule(lambda c: c.bundle.liquidity.total_liquidity_sol, th.liquidity_sol),
                LIQ,
            ),
            Component(
                "USD depth",
                4,
                TierRule(lambda c: c.bundle.liquidity.liquidity_usd, th.liquidity_usd),
                LIQ,
            ),
            Component(
                "LP burned",
                3,
                CheckRule(lambda c: not c.bundle.liquidity.lp_burned, "LP tokens not burned"),
                LIQ,
            ),
            Component(
                "LP locked",
                3,
                CheckRule(lambda c: not c.bundle.liquidity.lp_locked, "LP tokens not locked"),
                LIQ,
            ),
        ),
        Category.HOLDERS: (
            Component(
                "Top 10 concentration",
                8,
                TierRule(lambda c: c.bundle.holders.top10_pct, th.top10_pct),
                HOLD,
            ),
            Component(
                "Creator share",
                6,
                TierRule(lambda c: c.bundle.holders.creator_pct, th.creator_pct),
                HOLD,
            ),
            Component(
                "Holder count",
                3,
                TierRule(lambda c: c.bundle.holders.total_holders, th.holder_count),
                HOLD,
            ),
            Component(
                "Bundle wallets",
                3,
                CheckRule(
                    lambda c: bundled_wallets(c.bundle, c.detectors) > 0,
                    "Bundled wallets among holders",
                ),
                HOLD,
            ),
        ),
        Category.MARKET: (
            Component(
                "Token age",
                6,
                TierRule(lambda c: c.bundle.market.age_days, th.age_days),
                MKT,
            ),
            Component(
                "Pump and dump",
                4,
                CheckRule(
                    lambda c: c.bundle.market.is_pump_and_dump,
                    "Pump-and-dump pattern (new token, extreme activity)",
                ),
                MKT,
            ),
        ),
        Category.TRADING: (
            Component(
                "Snipers",
                3,
                DetectorRule(
                    lambda d: d.sniper,
                    lambda r: f"{r.sniper_count} sniper wallets" if r.sniper_count else None,
                ),
            ),
            Component(
                "Bundle bots",
                3,
                DetectorRule(
                    lambda d: d.bundle,
                    lambda r: f"{r.bundle_bots} bundle bot wallets" if r.bundle_bots else None,
                ),
            ),
            Component(
                "Wash trading",
                3,
                DetectorRule(
                    lambda d: d.wash_trading,
                    lambda r: "Wash trading detected" if r.is_wash_trading else None,
                ),
            ),
            Component(
                "Honeypot",
                6,
                DetectorRule(
                    lambda d: d.honeypot,
                    lambda r: "Honeypot detected" if r.is_honeypot else None,
                ),
            ),
        ),
        Category.CONTRACT: (
            Component(
                "Mint authority",
                7,
                CheckRule(lambda c: c.bundle.contract.is_mintable, "Mint authority enabled"),
                CON,
            ),
            Component(
                "Freeze authority",
                5,
                CheckRule(
                    lambda c: c.bundle.contract.has_freeze_authority, "Freeze authority enabled"
                ),
                CON,
            ),
            Component(
                "Ownership",
                3,
                CheckRule(lambda c: not c.bundle.contract.renounced, "Ownership not renounced"),
                CON,
            ),
            Component(
                "Blacklist",
                3,
                CheckRule(lambda c: c.bundle.contract.has_blacklist, "Blacklist function present"),
                CON,
            ),
            Component(
                "Whitelist",
                2,
                CheckRule(lambda c: c.bundle.contract.has_whitelist, "Whitelist function present"),
                CON,
            ),
            Component(
                "Proxy",
                2,
                CheckRule(lambda c: c.bundle.contract.is_proxy, "Upgradeable proxy contract"),
                CON,
            ),
            Component(
                "Verification",
                1,
                CheckRule(lambda c: not c.bundle.contract.verified, "Contract not verified"),
                CON,
            ),
            Component(
                "Sell tax",
                2,
                TierRule(lambda c: c.bundle.simulation.sell_tax, th.contract_sell_tax),
                SIM,
            ),
        ),
    }


def _caps() -> dict[Category, tuple[Cap, ...]]:
    return {
        Category.LIQUIDITY: (
            Cap(
                lambda c: c.bundle.liquidity.risk_level is RiskLevel.CRITICAL,
                4,
                "Liquidity rated CRITICAL by source",
            ),
            Cap(
                lambda c: c.bundle.liquidity.risk_level is RiskLevel.HIGH,
                10,
                "Liquidity rated HIGH risk by source",
            ),
        ),
        Category.TRADING: (
            Cap(
                lambda c: c.detectors.honeypot.evaluated and not c.detectors.honeypot.can_sell,
                1,
                "Can sell: ⛔ NO",
            ),
        ),
    }


def score_security(ctx: ScoringContext, thresholds: ScoringThresholds) -> dict[Category, CategoryScore]:
    components = _components(thresholds)
    caps = _caps()
    return {
        category: score_category(
            category,
            components[category],
            ctx,
            max_score=max_score,
            weight=weight,
            caps=caps.get(category, ()),
        )
        for category, (max_score, weight) in SECURITY_CATEGORIES.items()
    }
