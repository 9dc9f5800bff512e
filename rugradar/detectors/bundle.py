"""Bundle detection — coordinated same-slot buys by co-funded wallets.

Buyers and the wallets that sent them SOL before their buy are merged
into funding components (union-find), so two clusters sharing any funder
collapse into one instead of being counted twice. A component is a bundle
when at least ``min_wallets`` of its buyers bought in the same slot.
"""

from collections import defaultdict
from dataclasses import dataclass, field

from loguru import logger

from rugradar.detectors.base import NO_HISTORY, DetectorStatus, Origin
from rugradar.models.metrics import MetricsBundle
from rugradar.sources import TransactionHistory
from rugradar.utils.logger import short


@dataclass(frozen=True)
class BundleResult:
    """Result of bundle analysis."""

    status: DetectorStatus = DetectorStatus.NOT_EVALUATED
    origin: Origin = Origin.NONE
    reason: str | None = None
    bundle_count: int = 0
    bundle_bots: int = 0  # distinct buyer wallets inside bundles
    clusters: tuple[tuple[str, ...], ...] = field(default_factory=tuple)

    @property
    def evaluated(self) -> bool:
        return self.status is DetectorStatus.EVALUATED

    @property
    def detected(self) -> bool:
        return self.evaluated and self.bundle_count > 0


class _DisjointSet:
    def __init__(self) -> None:
        self._parent: dict[str, str] = {}

    def find(self, item: str) -> str:
        root = self._parent.setdefault(item, item)
        while root != self._parent[root]:
            root = self._parent[root]
        # Path compression
        while item != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: str, b: str) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            # Deterministic root keeps cluster ids stable across runs
            if rb < ra:
                ra, rb = rb, ra
            self._parent[rb] = ra


def detect_bundles(
    bundle: MetricsBundle,
    history: TransactionHistory | None,
    *,
    min_wallets: int = 3,
) -> BundleResult:
    if history is None:
        trading = bundle.trading
        if trading.available:
            return BundleResult(
                status=DetectorStatus.EVALUATED,
                origin=Origin.SOURCE,
                bundle_count=trading.bundle_count,
                bundle_bots=trading.bundle_bots,
            )
        return BundleResult(reason=NO_HISTORY)

    mint = bundle.token_address
    txs = sorted(history.transactions, key=lambda t: (t.slot, t.signature))

    # (wallet, slot) of every successful buy
    buys = [(tx.fee_payer, tx.slot) for tx in txs if tx.fee_payer and tx.is_buy(mint)]
    buyers = {wallet for wallet, _ in buys}
    first_buy_slot: dict[str, int] = {}
    for wallet, slot in buys:
        first_buy_slot.setdefault(wallet, slot)

    dsu = _DisjointSet()
    for wallet in buyers:
        dsu.find(wallet)

    # Funders: SOL senders in non-swap transfers to a buyer, at or before the buy
    for tx in txs:
        if tx.failed or tx.is_swap:
            continue
        for nt in tx.native_transfers:
            receiver = nt.to_user_account
            sender = nt.from_user_account
            if (
                nt.amount > 0
                and receiver in buyers
                and sender
                and sender != receiver
                and tx.slot <= first_buy_slot[receiver]
            ):
                dsu.union(receiver, sender)

    # component root -> slot -> buyers
    slots_by_component: dict[str, dict[int, set[str]]] = defaultdict(lambda: defaultdict(set))
    for wallet, slot in buys:
        slots_by_component[dsu.find(wallet)][slot].add(wallet)

    clusters: list[tuple[str, ...]] = []
    for slots in slots_by_component.values():
        bundled: set[str] = set()
        for wallets in slots.values():
            if len(wallets) >= min_wallets:
                bundled |= wallets
        if bundled:
            clusters.append(tuple(sorted(bundled)))
    clusters.sort()

    result = BundleResult(
        status=DetectorStatus.EVALUATED,
        origin=Origin.HISTORY,
        bundle_count=len(clusters),
        bundle_bots=sum(len(c) for c in clusters),
        clusters=tuple(clusters),
    )

    if result.detected:
        logger.info(
            f"[BUNDLE] {short(mint)}: {result.bundle_count} bundle(s), "
            f"{result.bundle_bots} wallets"
        )

    return result
