"""Wash-trading detection — circular token transfers between wallets.

Builds a directed graph of wallet-to-wallet token transfers inside the
lookback window and looks for A→B→A and A→B→C→A cycles. Volume moved along
cycle edges is valued in SOL at the history's average swap price and
compared against pool liquidity.
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from rugradar.detectors.base import NO_HISTORY, DetectorStatus, Origin
from rugradar.models.metrics import MetricsBundle
from rugradar.models.transaction import Transaction
from rugradar.sources import TransactionHistory
from rugradar.utils.logger import short


@dataclass(frozen=True)
class WashTradingResult:
    status: DetectorStatus = DetectorStatus.NOT_EVALUATED
    origin: Origin = Origin.NONE
    reason: str | None = None
    is_wash_trading: bool = False
    cycle_count: int = 0
    cycle_volume_sol: float = 0.0
    threshold_sol: float = 0.0
    wallets: tuple[str, ...] = ()

    @property
    def evaluated(self) -> bool:
        return self.status is DetectorStatus.EVALUATED

    @property
    def detected(self) -> bool:
        return self.evaluated and self.is_wash_trading


def average_swap_price(transactions: list[Transaction], mint: str) -> float:
    """SOL per token across successful swaps (0.0 when there are none)."""
    total_sol = 0.0
    total_tokens = Decimal("0")
    for tx in transactions:
        if not (tx.is_buy(mint) or tx.is_sell(mint)):
            continue
        tokens = tx.token_amount_for(mint)
        if tokens <= 0:
            continue
        total_sol += tx.sol_moved_by(tx.fee_payer)
        total_tokens += tokens
    if total_tokens <= 0:
        return 0.0
    return total_sol / float(total_tokens)


def find_cycles(edges: dict[tuple[str, str], Decimal]) -> list[tuple[str, ...]]:
    """2- and 3-cycles, each reported once starting from its smallest wallet."""
    succ: dict[str, set[str]] = defaultdict(set)
    for a, b in edges:
        succ[a].add(b)

    cycles: list[tuple[str, ...]] = []
    for a in sorted(succ):
        for b in sorted(succ[a]):
            if b <= a:
                continue
            if a in succ.get(b, ()):
                cycles.append((a, b))
            for c in sorted(succ.get(b, ())):
                if c <= a or c == b:
                    continue
                if a in succ.get(c, ()):
                    cycles.append((a, b, c))
    return cycles


def detect_wash_trading(
    bundle: MetricsBundle,
    history: TransactionHistory | None,
    *,
    lookback_sec: int = 3600,
    volume_ratio: float = 0.5,
) -> WashTradingResult:
    if history is None:
        trading = bundle.trading
        if trading.available:
            return WashTradingResult(
                status=DetectorStatus.EVALUATED,
                origin=Origin.SOURCE,
                is_wash_trading=trading.wash_trading,
            )
        return WashTradingResult(reason=NO_HISTORY)

    mint = bundle.token_address
    txs = [tx for tx in history.transactions if not tx.failed]
    if not txs:
        return WashTradingResult(status=DetectorStatus.EVALUATED, origin=Origin.HISTORY)

    window_end = max(tx.timestamp for tx in txs)
    window_start = window_end - lookback_sec
    recent = [tx for tx in txs if tx.timestamp >= window_start]

    edges: dict[tuple[str, str], Decimal] = defaultdict(Decimal)
    for tx in recent:
        if tx.is_swap:
            continue
        for tt in tx.token_transfers:
            src, dst = tt.from_user_account, tt.to_user_account
            if tt.mint != mint or not src or not dst or src == dst or tt.token_amount <= 0:
                continue
            edges[(src, dst)] += tt.token_amount

    cycles = find_cycles(edges)

    # Each edge counted once even when it sits on several cycles
    cycle_edges: set[tuple[str, str]] = set()
    for cycle in cycles:
        for i, wallet in enumerate(cycle):
            cycle_edges.add((wallet, cycle[(i + 1) % len(cycle)]))
    cycle_tokens = sum((edges[e] for e in cycle_edges), Decimal("0"))

    price = average_swap_price(recent, mint)
    volume_sol = float(cycle_tokens) * price
    liquidity = bundle.liquidity
    threshold = volume_ratio * liquidity.total_liquidity_sol if liquidity.available else 0.0

    is_wash = bool(cycles) and volume_sol > threshold
    wallets = tuple(sorted({w for cycle in cycles for w in cycle}))

    if is_wash:
        logger.info(
            f"[WASH] {short(mint)}: {len(cycles)} cycle(s), "
            f"{volume_sol:.2f} SOL circular volume (threshold {threshold:.2f})"
        )

    return WashTradingResult(
        status=DetectorStatus.EVALUATED,
        origin=Origin.HISTORY,
        is_wash_trading=is_wash,
        cycle_count=len(cycles),
        cycle_volume_sol=volume_sol,
        threshold_sol=threshold,
        wallets=wallets,
    )
