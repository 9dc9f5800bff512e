"""Canonical, source-independent metrics for one analysis run.

Every group carries an ``available`` bit. An unavailable group keeps
neutral defaults and must be reported as insufficient data, never scored
as safe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from rugradar.models.report import RiskLevel


class SourceKind(StrEnum):
    LIQUIDITY = "liquidity"
    HOLDERS = "holders"
    MARKET = "market"
    CONTRACT = "contract"
    SIMULATION = "simulation"
    METADATA = "metadata"
    TRADING = "trading"
    TRANSACTIONS = "transactions"


AvailabilityMap = dict[SourceKind, bool]


@dataclass(frozen=True)
class LiquidityMetrics:
    total_liquidity_sol: float = 0.0
    liquidity_usd: float = 0.0
    lp_burned: bool = False
    lp_locked: bool = False
    risk_level: RiskLevel | None = None
    pool_count: int = 0
    available: bool = False


@dataclass(frozen=True)
class HolderMetrics:
    total_holders: int = 0
    top10_pct: float = 0.0
    creator_pct: float = 0.0
    concentration_risk: RiskLevel | None = None
    gini: float = 1.0
    bundle_wallets: int = 0
    available: bool = False


@dataclass(frozen=True)
class MarketMetrics:
    age_days: float = 0.0
    is_pump_and_dump: bool = False
    volume_24h: float = 0.0
    price_change_24h: float = 0.0
    buys_24h: int = 0
    sells_24h: int = 0
    market_cap: float = 0.0
    available: bool = False


@dataclass(frozen=True)
class TradingMetrics:
    bundle_bots: int = 0
    bundle_count: int = 0
    snipers: int = 0
    wash_trading: bool = False
    honeypot_detected: bool = False
    can_sell: bool = True
    available: bool = False


@dataclass(frozen=True)
class ContractMetrics:
    renounced: bool = False
    verified: bool = False
    has_blacklist: bool = False
    has_whitelist: bool = False
    is_proxy: bool = False
    is_mintable: bool = False
    has_freeze_authority: bool = False
    mutable_metadata: bool = False
    is_copycat: bool = False
    rugcheck_score: int | None = None
    risk_names: tuple[str, ...] = ()
    available: bool = False


@dataclass(frozen=True)
class SimulationMetrics:
    buy_tax: float = 0.0
    sell_tax: float = 0.0
    transfer_tax: float = 0.0
    max_tx_amount: float | None = None
    max_wallet_amount: float | None = None
    buy_succeeded: bool | None = None
    sell_succeeded: bool | None = None
    is_honeypot: bool | None = None
    available: bool = False


@dataclass(frozen=True)
class MetadataMetrics:
    symbol: str = "UNKNOWN"
    name: str = "Unknown Token"
    verified: bool = False
    has_website: bool = False
    has_socials: bool = False
    has_description: bool = False
    has_image: bool = False
    available: bool = False


@dataclass(frozen=True)
class MetricsBundle:
    """One immutable bundle per analysis run."""

    token_address: str
    liquidity: LiquidityMetrics = field(default_factory=LiquidityMetrics)
    holders: HolderMetrics = field(default_factory=HolderMetrics)
    market: MarketMetrics = field(default_factory=MarketMetrics)
    trading: TradingMetrics = field(default_factory=TradingMetrics)
    contract: ContractMetrics = field(default_factory=ContractMetrics)
    simulation: SimulationMetrics = field(default_factory=SimulationMetrics)
    metadata: MetadataMetrics = field(default_factory=MetadataMetrics)

    @property
    def availability(self) -> AvailabilityMap:
        return {
            SourceKind.LIQUIDITY: self.liquidity.available,
            SourceKind.HOLDERS: self.holders.available,
            SourceKind.MARKET: self.market.available,
            SourceKind.CONTRACT: self.contract.available,
            SourceKind.SIMULATION: self.simulation.available,
            SourceKind.METADATA: self.metadata.available,
            SourceKind.TRADING: self.trading.available,
        }

    def is_available(self, kind: SourceKind) -> bool:
        return self.availability.get(kind, False)

    @property
    def unavailable_sources(self) -> list[str]:
        return [kind.value for kind, ok in self.availability.items() if not ok]
