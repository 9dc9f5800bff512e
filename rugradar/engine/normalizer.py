"""Metrics normalizer — merge source payloads into one MetricsBundle.

Never fails on missing sources: an absent or unavailable source leaves its
metric group at neutral defaults with ``available=False``. Only a malformed
token address is rejected.
"""

from __future__ import annotations

import time

from loguru import logger

from config.settings import settings
from rugradar.models.metrics import (
    AvailabilityMap,
    ContractMetrics,
    HolderMetrics,
    LiquidityMetrics,
    MarketMetrics,
    MetadataMetrics,
    MetricsBundle,
    SimulationMetrics,
    SourceKind,
    TradingMetrics,
)
from rugradar.models.report import RiskLevel
from rugradar.sources import (
    ContractPayload,
    HoldersPayload,
    LiquidityPayload,
    MarketPayload,
    MetadataPayload,
    Present,
    SimulationPayload,
    SourceResult,
    TradingPayload,
    pick,
)
from rugradar.utils.addr import validate_address
from rugradar.utils.logger import short

# A pool counts as burned/locked above these LP shares
LP_BURNED_MIN_PCT = 90.0
LP_LOCKED_MIN_PCT = 50.0

# Pump-and-dump heuristic: very young token with heavy activity
PUMP_MAX_AGE_DAYS = 1.0
PUMP_MIN_TX_24H = 500

# Rug-check risk names mapped onto contract flags
RISK_MINTABLE = "Mint authority still enabled"
RISK_FREEZE = "Freeze authority still enabled"
RISK_MUTABLE = "Mutable metadata"
RISK_COPYCAT = "Copycat token"


def normalize(
    token_id: str,
    sources: list[SourceResult],
    *,
    now: float | None = None,
    sol_price_fallback: float | None = None,
) -> tuple[MetricsBundle, AvailabilityMap]:
    """Build the canonical bundle for a token from whatever sources arrived.

    Args:
        token_id: Token mint address (validated, raises InvalidIdentifierError).
        sources: Present/Unavailable results, at most one used per kind.
        now: Unix time used to derive token age (defaults to time.time()).
        sol_price_fallback: SOL/USD used when a liquidity source has no price.
    """
    address = validate_address(token_id)
    now = time.time() if now is None else now
    fallback_price = (
        settings.sol_price_fallback_usd if sol_price_fallback is None else sol_price_fallback
    )

    bundle = MetricsBundle(
        token_address=address,
        liquidity=_liquidity(pick(sources, SourceKind.LIQUIDITY), fallback_price),
        holders=_holders(pick(sources, SourceKind.HOLDERS)),
        market=_market(pick(sources, SourceKind.MARKET), now),
        trading=_trading(pick(sources, SourceKind.TRADING)),
        contract=_contract(pick(sources, SourceKind.CONTRACT)),
        simulation=_simulation(pick(sources, SourceKind.SIMULATION)),
        metadata=_metadata(pick(sources, SourceKind.METADATA)),
    )

    missing = bundle.unavailable_sources
    if missing:
        logger.debug(f"[NORMALIZE] {short(address)}: insufficient data from {', '.join(missing)}")

    return bundle, bundle.availability


def _liquidity(result: SourceResult, fallback_price: float) -> LiquidityMetrics:
    if not isinstance(result, Present):
        return LiquidityMetrics()
    p: LiquidityPayload = result.payload  # type: ignore[assignment]
    price = p.sol_price_usd if p.sol_price_usd and p.sol_price_usd > 0 else fallback_price

    sol = p.total_liquidity_sol
    usd = p.liquidity_usd
    if sol is None and p.pools:
        sol = sum(
            pool.liquidity_sol
            if pool.liquidity_sol is not None
            else (pool.liquidity_usd or 0.0) / price
            for pool in p.pools
        )
    if usd is None and p.pools:
        usd = sum(
            pool.liquidity_usd
            if pool.liquidity_usd is not None
            else (pool.liquidity_sol or 0.0) * price
            for pool in p.pools
        )
    if sol is None and usd is not None:
        sol = usd / price
    if usd is None and sol is not None:
        usd = sol * price

    lp_burned = p.lp_burned
    if lp_burned is None:
        lp_burned = any(
            pool.lp_burned is True
            or (pool.lp_burned_pct is not None and pool.lp_burned_pct >= LP_BURNED_MIN_PCT)
            for pool in p.pools
        )
    lp_locked = p.lp_locked
    if lp_locked is None:
        lp_locked = any(
            pool.lp_locked is True
            or (pool.lp_locked_pct is not None and pool.lp_locked_pct >= LP_LOCKED_MIN_PCT)
            for pool in p.pools
        )

    return LiquidityMetrics(
        total_liquidity_sol=max(0.0, sol or 0.0),
        liquidity_usd=max(0.0, usd or 0.0),
        lp_burned=lp_burned,
        lp_locked=lp_locked,
        risk_level=p.risk_level,
        pool_count=len(p.pools),
        available=True,
    )


def concentration_band(top10_pct: float, creator_pct: float) -> RiskLevel:
    if top10_pct > 80 or creator_pct > 50:
        return RiskLevel.CRITICAL
    if top10_pct > 60 or creator_pct > 30:
        return RiskLevel.HIGH
    if top10_pct > 40 or creator_pct > 20:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def gini(amounts: list[float]) -> float:
    """Gini coefficient: 0 = perfect equality, 1 = one holder owns everything."""
    if not amounts:
        return 1.0
    ordered = sorted(amounts)
    n = len(ordered)
    total = sum(ordered)
    if total <= 0:
        return 1.0
    numerator = sum((2 * (i + 1) - n - 1) * amount for i, amount in enumerate(ordered))
    return numerator / (n * total)


def _holders(result: SourceResult) -> HolderMetrics:
    if not isinstance(result, Present):
        return HolderMetrics()
    p: HoldersPayload = result.payload  # type: ignore[assignment]

    amounts = sorted((h.amount for h in p.holders if h.amount > 0), reverse=True)
    supply = sum(amounts)

    top10_pct = p.top10_pct
    if top10_pct is None:
        top10_pct = sum(amounts[:10]) / supply * 100 if supply > 0 else 0.0
    # Creator is typically the largest holder
    creator_pct = p.creator_pct
    if creator_pct is None:
        creator_pct = amounts[0] / supply * 100 if supply > 0 else 0.0

    bundle_wallets = p.bundle_wallets
    if bundle_wallets is None:
        bundle_wallets = len({w for cluster in p.clusters if len(cluster) >= 2 for w in cluster})

    total_holders = p.total_holders if p.total_holders is not None else len(p.holders)

    return HolderMetrics(
        total_holders=total_holders,
        top10_pct=top10_pct,
        creator_pct=creator_pct,
        concentration_risk=concentration_band(top10_pct, creator_pct),
        gini=gini(amounts),
        bundle_wallets=bundle_wallets,
        available=True,
    )


def _market(result: SourceResult, now: float) -> MarketMetrics:
    if not isinstance(result, Present):
        return MarketMetrics()
    p: MarketPayload = result.payload  # type: ignore[assignment]

    age_days = p.age_days
    if age_days is None and p.created_at:
        age_days = max(0.0, (now - p.created_at) / 86400)
    age_days = age_days or 0.0

    pump = p.is_pump_and_dump
    if pump is None:
        pump = age_days < PUMP_MAX_AGE_DAYS and (p.tx_count_24h or 0) > PUMP_MIN_TX_24H

    return MarketMetrics(
        age_days=age_days,
        is_pump_and_dump=pump,
        volume_24h=p.volume_24h or 0.0,
        price_change_24h=p.price_change_24h or 0.0,
        buys_24h=p.buys_24h or 0,
        sells_24h=p.sells_24h or 0,
        market_cap=p.market_cap or 0.0,
        available=True,
    )


def _trading(result: SourceResult) -> TradingMetrics:
    if not isinstance(result, Present):
        return TradingMetrics()
    p: TradingPayload = result.payload  # type: ignore[assignment]
    return TradingMetrics(
        bundle_bots=p.bundle_bots or 0,
        bundle_count=p.bundle_count or 0,
        snipers=p.snipers or 0,
        wash_trading=bool(p.wash_trading),
        honeypot_detected=bool(p.honeypot_detected),
        can_sell=p.can_sell is not False,
        available=True,
    )


def _contract(result: SourceResult) -> ContractMetrics:
    if not isinstance(result, Present):
        return ContractMetrics()
    p: ContractPayload = result.payload  # type: ignore[assignment]
    names = tuple(r.name.strip() for r in p.risks if r.name.strip())

    is_mintable = p.is_mintable
    if is_mintable is None:
        is_mintable = bool(p.mint_authority) or RISK_MINTABLE in names
    has_freeze = bool(p.freeze_authority) or RISK_FREEZE in names
    renounced = p.renounced
    if renounced is None:
        renounced = not is_mintable and not has_freeze
    mutable = p.mutable_metadata
    if mutable is None:
        mutable = RISK_MUTABLE in names

    return ContractMetrics(
        renounced=renounced,
        verified=bool(p.verified),
        has_blacklist=bool(p.has_blacklist),
        has_whitelist=bool(p.has_whitelist),
        is_proxy=bool(p.is_proxy),
        is_mintable=is_mintable,
        has_freeze_authority=has_freeze,
        mutable_metadata=mutable,
        is_copycat=RISK_COPYCAT in names,
        rugcheck_score=p.score,
        risk_names=names,
        available=True,
    )


def _simulation(result: SourceResult) -> SimulationMetrics:
    if not isinstance(result, Present):
        return SimulationMetrics()
    p: SimulationPayload = result.payload  # type: ignore[assignment]
    return SimulationMetrics(
        buy_tax=p.buy_tax or 0.0,
        sell_tax=p.sell_tax or 0.0,
        transfer_tax=p.transfer_tax or 0.0,
        max_tx_amount=p.max_tx_amount,
        max_wallet_amount=p.max_wallet_amount,
        buy_succeeded=p.buy_succeeded,
        sell_succeeded=p.sell_succeeded,
        is_honeypot=p.is_honeypot,
        available=True,
    )


def _metadata(result: SourceResult) -> MetadataMetrics:
    if not isinstance(result, Present):
        return MetadataMetrics()
    p: MetadataPayload = result.payload  # type: ignore[assignment]
    return MetadataMetrics(
        symbol=p.symbol or "UNKNOWN",
        name=p.name or "Unknown Token",
        verified=bool(p.verified),
        has_website=bool(p.website),
        has_socials=bool(p.twitter or p.telegram),
        has_description=bool(p.description and p.description.strip()),
        has_image=bool(p.image_url),
        available=True,
    )
