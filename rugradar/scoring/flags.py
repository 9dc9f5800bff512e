"""Red / green flag generation.

A flat table of rules evaluated independently: every matching rule fires,
output order is table order and severity is a property of the rule. Rules
only fire on data that is actually available.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from rugradar.detectors.base import Origin
from rugradar.detectors.runner import DetectorResults
from rugradar.models.metrics import MetricsBundle
from rugradar.models.report import Category, CategoryScore, Flag, Severity
from rugradar.scoring.rules import bundled_wallets

WEAK_CATEGORY_RATIO = 0.25


class Polarity(StrEnum):
    RED = "red"
    GREEN = "green"


@dataclass(frozen=True)
class FlagContext:
    bundle: MetricsBundle
    detectors: DetectorResults
    scores: dict[Category, CategoryScore]


@dataclass(frozen=True)
class FlagRule:
    name: str
    polarity: Polarity
    severity: Severity
    category: str
    predicate: Callable[[FlagContext], bool]
    message: str | Callable[[FlagContext], str]

    def render(self, ctx: FlagContext) -> Flag:
        text = self.message if isinstance(self.message, str) else self.message(ctx)
        return Flag(severity=self.severity, category=self.category, message=text)


# --- predicates ---


def _liq_sol(ctx: FlagContext) -> float | None:
    liq = ctx.bundle.liquidity
    return liq.total_liquidity_sol if liq.available else None


def _weak_categories(ctx: FlagContext) -> list[CategoryScore]:
    return [
        s
        for s in ctx.scores.values()
        if not s.insufficient_data and s.ratio < WEAK_CATEGORY_RATIO
    ]


def _clean_history(ctx: FlagContext) -> bool:
    sniper, bundle = ctx.detectors.sniper, ctx.detectors.bundle
    return (
        sniper.evaluated
        and bundle.evaluated
        and sniper.origin is Origin.HISTORY
        and bundle.origin is Origin.HISTORY
        and sniper.sniper_count == 0
        and bundle.bundle_count == 0
    )


def _sell_confirmed(ctx: FlagContext) -> bool:
    sim = ctx.bundle.simulation
    return sim.available and sim.sell_succeeded is True and sim.sell_tax <= 1.0


RED = Polarity.RED
GREEN = Polarity.GREEN
CRIT, HIGH, MED, LOW = Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW

FLAG_RULES: tuple[FlagRule, ...] = (
    # --- red ---
    FlagRule(
        "honeypot", RED, CRIT, "Trading",
        lambda c: c.detectors.honeypot.evaluated and c.detectors.honeypot.is_honeypot,
        "HONEYPOT DETECTED - Nobody can sell this token!",
    ),
    FlagRule(
        "cannot_sell", RED, CRIT, "Trading",
        lambda c: c.detectors.honeypot.evaluated and not c.detectors.honeypot.can_sell,
        "Can sell: ⛔ NO - sell simulation failed",
    ),
    FlagRule(
        "liquidity_critical", RED, CRIT, "Liquidity",
        lambda c: _liq_sol(c) is not None and _liq_sol(c) < 5,
        lambda c: f"Critically low liquidity: {c.bundle.liquidity.total_liquidity_sol:.2f} SOL",
    ),
    FlagRule(
        "liquidity_low", RED, HIGH, "Liquidity",
        lambda c: _liq_sol(c) is not None and 5 <= _liq_sol(c) < 20,
        lambda c: f"Low liquidity: {c.bundle.liquidity.total_liquidity_sol:.2f} SOL",
    ),
    FlagRule(
        "lp_not_burned", RED, HIGH, "Liquidity",
        lambda c: c.bundle.liquidity.available and not c.bundle.liquidity.lp_burned,
        "LP tokens not burned - liquidity can be removed",
    ),
    FlagRule(
        "lp_not_locked", RED, HIGH, "Liquidity",
        lambda c: c.bundle.liquidity.available and not c.bundle.liquidity.lp_locked,
        "LP tokens not locked",
    ),
    FlagRule(
        "mint_and_freeze", RED, CRIT, "Contract",
        lambda c: c.bundle.contract.available
        and c.bundle.contract.is_mintable
        and c.bundle.contract.has_freeze_authority,
        "Mint and freeze authority both enabled - creator can print and freeze tokens",
    ),
    FlagRule(
        "mint_authority", RED, HIGH, "Contract",
        lambda c: c.bundle.contract.available
        and c.bundle.contract.is_mintable
        and not c.bundle.contract.has_freeze_authority,
        "Mint authority enabled - supply can be inflated",
    ),
    FlagRule(
        "freeze_authority", RED, MED, "Contract",
        lambda c: c.bundle.contract.available
        and c.bundle.contract.has_freeze_authority
        and not c.bundle.contract.is_mintable,
        "Freeze authority enabled - wallets can be frozen",
    ),
    FlagRule(
        "blacklist", RED, HIGH, "Contract",
        lambda c: c.bundle.contract.available and c.bundle.contract.has_blacklist,
        "Blacklist function present",
    ),
    FlagRule(
        "proxy", RED, MED, "Contract",
        lambda c: c.bundle.contract.available and c.bundle.contract.is_proxy,
        "Upgradeable proxy contract",
    ),
    FlagRule(
        "whitelist", RED, MED, "Contract",
        lambda c: c.bundle.contract.available and c.bundle.contract.has_whitelist,
        "Whitelist function present",
    ),
    FlagRule(
        "creator_critical", RED, CRIT, "Holders",
        lambda c: c.bundle.holders.available and c.bundle.holders.creator_pct > 50,
        lambda c: f"Creator holds {c.bundle.holders.creator_pct:.1f}% of supply",
    ),
    FlagRule(
        "creator_high", RED, HIGH, "Holders",
        lambda c: c.bundle.holders.available and 30 < c.bundle.holders.creator_pct <= 50,
        lambda c: f"Creator holds {c.bundle.holders.creator_pct:.1f}% of supply",
    ),
    FlagRule(
        "top10_concentration", RED, HIGH, "Holders",
        lambda c: c.bundle.holders.available and c.bundle.holders.top10_pct > 80,
        lambda c: f"Top 10 holders own {c.bundle.holders.top10_pct:.1f}%",
    ),
    FlagRule(
        "bundle_wallets", RED, MED, "Holders",
        lambda c: bundled_wallets(c.bundle, c.detectors) > 0,
        lambda c: f"{bundled_wallets(c.bundle, c.detectors)} bundled wallets among holders",
    ),
    FlagRule(
        "bundle_bots", RED, HIGH, "Trading",
        lambda c: c.detectors.bundle.evaluated and c.detectors.bundle.bundle_bots > 20,
        lambda c: f"{c.detectors.bundle.bundle_bots} bundle bot wallets",
    ),
    FlagRule(
        "snipers", RED, MED, "Trading",
        lambda c: c.detectors.sniper.detected,
        lambda c: f"{c.detectors.sniper.sniper_count} sniper wallets bought at launch",
    ),
    FlagRule(
        "wash_trading", RED, MED, "Trading",
        lambda c: c.detectors.wash_trading.detected,
        "Wash trading detected - volume may be fake",
    ),
    FlagRule(
        "sell_tax", RED, HIGH, "Contract",
        lambda c: c.bundle.simulation.available and c.bundle.simulation.sell_tax > 10,
        lambda c: f"High sell tax: {c.bundle.simulation.sell_tax:.1f}%",
    ),
    FlagRule(
        "buy_tax", RED, MED, "Contract",
        lambda c: c.bundle.simulation.available and c.bundle.simulation.buy_tax > 10,
        lambda c: f"High buy tax: {c.bundle.simulation.buy_tax:.1f}%",
    ),
    FlagRule(
        "pump_and_dump", RED, HIGH, "Market",
        lambda c: c.bundle.market.available and c.bundle.market.is_pump_and_dump,
        "Pump-and-dump pattern (new token, extreme activity)",
    ),
    FlagRule(
        "very_new", RED, MED, "Market",
        lambda c: c.bundle.market.available and c.bundle.market.age_days < 1,
        "Token is less than 1 day old",
    ),
    FlagRule(
        "copycat", RED, MED, "Contract",
        lambda c: c.bundle.contract.available and c.bundle.contract.is_copycat,
        "Copycat of an existing token",
    ),
    FlagRule(
        "weak_categories", RED, HIGH, "Score",
        lambda c: bool(_weak_categories(c)),
        lambda c: "Very low category score: "
        + ", ".join(f"{s.category.label} {s.score}/{s.max_score}" for s in _weak_categories(c)),
    ),
    FlagRule(
        "unavailable_sources", RED, LOW, "Data",
        lambda c: bool(c.bundle.unavailable_sources),
        lambda c: "Insufficient data: " + ", ".join(c.bundle.unavailable_sources) + " unavailable",
    ),
    # --- green ---
    FlagRule(
        "lp_burned", GREEN, HIGH, "Liquidity",
        lambda c: c.bundle.liquidity.available and c.bundle.liquidity.lp_burned,
        "LP tokens burned",
    ),
    FlagRule(
        "lp_locked", GREEN, HIGH, "Liquidity",
        lambda c: c.bundle.liquidity.available and c.bundle.liquidity.lp_locked,
        "LP tokens locked",
    ),
    FlagRule(
        "deep_liquidity", GREEN, MED, "Liquidity",
        lambda c: _liq_sol(c) is not None and _liq_sol(c) >= 100,
        lambda c: f"Deep liquidity: {c.bundle.liquidity.total_liquidity_sol:.0f} SOL",
    ),
    FlagRule(
        "renounced", GREEN, MED, "Contract",
        lambda c: c.bundle.contract.available and c.bundle.contract.renounced,
        "Contract ownership renounced",
    ),
    FlagRule(
        "verified", GREEN, MED, "Contract",
        lambda c: (c.bundle.contract.available and c.bundle.contract.verified)
        or (c.bundle.metadata.available and c.bundle.metadata.verified),
        "Verified token",
    ),
    FlagRule(
        "sell_confirmed", GREEN, MED, "Trading",
        _sell_confirmed,
        "Can sell: ✅ YES - sell simulation succeeded with low tax",
    ),
    FlagRule(
        "distributed_holders", GREEN, MED, "Holders",
        lambda c: c.bundle.holders.available and c.bundle.holders.top10_pct < 30,
        lambda c: f"Well distributed: top 10 own {c.bundle.holders.top10_pct:.1f}%",
    ),
    FlagRule(
        "many_holders", GREEN, LOW, "Holders",
        lambda c: c.bundle.holders.available and c.bundle.holders.total_holders >= 1000,
        lambda c: f"{c.bundle.holders.total_holders} holders",
    ),
    FlagRule(
        "established", GREEN, LOW, "Market",
        lambda c: c.bundle.market.available and c.bundle.market.age_days > 30,
        lambda c: f"Established token: {c.bundle.market.age_days:.0f} days old",
    ),
    FlagRule(
        "clean_launch", GREEN, LOW, "Trading",
        _clean_history,
        "No snipers or bundles at launch",
    ),
    FlagRule(
        "web_presence", GREEN, LOW, "Metadata",
        lambda c: c.bundle.metadata.available
        and c.bundle.metadata.has_website
        and c.bundle.metadata.has_socials,
        "Website and social links present",
    ),
)


def generate_flags(
    ctx: FlagContext, rules: tuple[FlagRule, ...] = FLAG_RULES
) -> tuple[list[Flag], list[Flag]]:
    """Evaluate every rule; returns (red, green) in table order."""
    red: list[Flag] = []
    green: list[Flag] = []
    for rule in rules:
        if not rule.predicate(ctx):
            continue
        target = red if rule.polarity is Polarity.RED else green
        target.append(rule.render(ctx))
    return red, green
