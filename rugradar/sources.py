"""Raw per-source payloads handed over by collector adapters.

A collector either produced its payload (Present) or did not (Unavailable).
Consumers must match both variants; there are no nullable "maybe" sources.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel

from rugradar.models.metrics import SourceKind
from rugradar.models.report import RiskLevel
from rugradar.models.transaction import Transaction


class PoolInfo(BaseModel):
    """One liquidity pool as reported by a DEX aggregator."""

    dex: str = "unknown"
    pair_address: str = ""
    liquidity_usd: float | None = None
    liquidity_sol: float | None = None
    lp_burned_pct: float | None = None
    lp_locked_pct: float | None = None
    lp_burned: bool | None = None
    lp_locked: bool | None = None

    model_config = {"extra": "ignore"}


class LiquidityPayload(BaseModel):
    total_liquidity_sol: float | None = None
    liquidity_usd: float | None = None
    lp_burned: bool | None = None
    lp_locked: bool | None = None
    risk_level: RiskLevel | None = None
    sol_price_usd: float | None = None
    pools: list[PoolInfo] = []

    model_config = {"extra": "ignore"}


class HolderEntry(BaseModel):
    address: str
    amount: float = 0.0

    model_config = {"extra": "ignore"}


class HoldersPayload(BaseModel):
    total_holders: int | None = None
    top10_pct: float | None = None
    creator_pct: float | None = None
    holders: list[HolderEntry] = []
    bundle_wallets: int | None = None
    clusters: list[list[str]] = []

    model_config = {"extra": "ignore"}


class MarketPayload(BaseModel):
    age_days: float | None = None
    created_at: int | None = None  # unix seconds
    volume_24h: float | None = None
    price_change_24h: float | None = None
    buys_24h: int | None = None
    sells_24h: int | None = None
    market_cap: float | None = None
    tx_count_24h: int | None = None
    is_pump_and_dump: bool | None = None

    model_config = {"extra": "ignore"}


class ContractRisk(BaseModel):
    """Individual risk reported by a rug-check style API."""

    name: str
    level: str = "info"  # "warn", "danger", "info"
    description: str = ""
    score: int = 0

    model_config = {"extra": "ignore"}


class ContractPayload(BaseModel):
    score: int | None = None
    risks: list[ContractRisk] = []
    mint_authority: str | None = None
    freeze_authority: str | None = None
    renounced: bool | None = None
    verified: bool | None = None
    has_blacklist: bool | None = None
    has_whitelist: bool | None = None
    is_proxy: bool | None = None
    is_mintable: bool | None = None
    mutable_metadata: bool | None = None

    model_config = {"extra": "ignore"}


class SimulationPayload(BaseModel):
    """Buy/sell simulation (quote API or pre-computed security report)."""

    buy_succeeded: bool | None = None
    sell_succeeded: bool | None = None
    buy_tax: float | None = None  # percentage (0-100)
    sell_tax: float | None = None
    transfer_tax: float | None = None
    max_tx_amount: float | None = None
    max_wallet_amount: float | None = None
    is_honeypot: bool | None = None

    model_config = {"extra": "ignore"}


class MetadataPayload(BaseModel):
    symbol: str | None = None
    name: str | None = None
    verified: bool | None = None
    website: str | None = None
    twitter: str | None = None
    telegram: str | None = None
    description: str | None = None
    image_url: str | None = None

    model_config = {"extra": "ignore"}


class TradingPayload(BaseModel):
    """Trading patterns pre-computed by a collector."""

    bundle_bots: int | None = None
    bundle_count: int | None = None
    snipers: int | None = None
    wash_trading: bool | None = None
    honeypot_detected: bool | None = None
    can_sell: bool | None = None

    model_config = {"extra": "ignore"}


class TransactionHistory(BaseModel):
    transactions: list[Transaction] = []
    pool_created_slot: int | None = None
    creator: str | None = None

    model_config = {"extra": "ignore"}


SourcePayload = (
    LiquidityPayload
    | HoldersPayload
    | MarketPayload
    | ContractPayload
    | SimulationPayload
    | MetadataPayload
    | TradingPayload
    | TransactionHistory
)

PAYLOAD_TYPES: dict[SourceKind, type[BaseModel]] = {
    SourceKind.LIQUIDITY: LiquidityPayload,
    SourceKind.HOLDERS: HoldersPayload,
    SourceKind.MARKET: MarketPayload,
    SourceKind.CONTRACT: ContractPayload,
    SourceKind.SIMULATION: SimulationPayload,
    SourceKind.METADATA: MetadataPayload,
    SourceKind.TRADING: TradingPayload,
    SourceKind.TRANSACTIONS: TransactionHistory,
}


@dataclass(frozen=True)
class Present:
    kind: SourceKind
    payload: SourcePayload

    def __post_init__(self) -> None:
        expected = PAYLOAD_TYPES[self.kind]
        if not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.kind} source expects {expected.__name__}, "
                f"got {type(self.payload).__name__}"
            )


@dataclass(frozen=True)
class Unavailable:
    kind: SourceKind
    reason: str = "unavailable"


SourceResult = Present | Unavailable


def present(payload: SourcePayload) -> Present:
    """Wrap a payload, inferring its kind from the payload type."""
    for kind, payload_type in PAYLOAD_TYPES.items():
        if isinstance(payload, payload_type):
            return Present(kind, payload)
    raise TypeError(f"Unknown source payload {type(payload).__name__}")


def pick(sources: list[SourceResult], kind: SourceKind) -> SourceResult:
    """First Present result of a kind, else the first Unavailable, else Unavailable("missing")."""
    fallback: SourceResult = Unavailable(kind, "missing")
    seen_unavailable = False
    for result in sources:
        if result.kind != kind:
            continue
        match result:
            case Present():
                return result
            case Unavailable():
                if not seen_unavailable:
                    fallback = result
                    seen_unavailable = True
    return fallback


class SourceCollector(Protocol):
    """Collector adapter (network side lives outside the engine)."""

    kind: SourceKind

    async def fetch(self, token_address: str) -> SourcePayload: ...
