"""Sniper detection — wallets whose first buy lands right after pool creation."""

from dataclasses import dataclass

from loguru import logger

from rugradar.detectors.base import NO_HISTORY, DetectorStatus, Origin
from rugradar.models.metrics import MetricsBundle
from rugradar.models.transaction import POOL_CREATION_TYPES
from rugradar.sources import TransactionHistory
from rugradar.utils.logger import short


@dataclass(frozen=True)
class SniperResult:
    status: DetectorStatus = DetectorStatus.NOT_EVALUATED
    origin: Origin = Origin.NONE
    reason: str | None = None
    creation_slot: int | None = None
    sniper_count: int = 0
    snipers: tuple[str, ...] = ()

    @property
    def evaluated(self) -> bool:
        return self.status is DetectorStatus.EVALUATED

    @property
    def detected(self) -> bool:
        return self.evaluated and self.sniper_count > 0


def find_creation_slot(history: TransactionHistory) -> int | None:
    if history.pool_created_slot is not None:
        return history.pool_created_slot
    slots = [
        tx.slot
        for tx in history.transactions
        if not tx.failed and tx.type in POOL_CREATION_TYPES
    ]
    return min(slots) if slots else None


def detect_snipers(
    bundle: MetricsBundle,
    history: TransactionHistory | None,
    *,
    block_window: int = 3,
) -> SniperResult:
    if history is None:
        trading = bundle.trading
        if trading.available:
            return SniperResult(
                status=DetectorStatus.EVALUATED,
                origin=Origin.SOURCE,
                sniper_count=trading.snipers,
            )
        return SniperResult(reason=NO_HISTORY)

    creation_slot = find_creation_slot(history)
    if creation_slot is None:
        return SniperResult(reason="pool creation slot unknown")

    mint = bundle.token_address
    first_buy: dict[str, int] = {}
    for tx in history.transactions:
        if not tx.fee_payer or tx.fee_payer == history.creator or not tx.is_buy(mint):
            continue
        prev = first_buy.get(tx.fee_payer)
        if prev is None or tx.slot < prev:
            first_buy[tx.fee_payer] = tx.slot

    snipers = tuple(
        sorted(w for w, slot in first_buy.items() if 0 <= slot - creation_slot < block_window)
    )

    if snipers:
        logger.info(
            f"[SNIPER] {short(mint)}: {len(snipers)} wallets bought within "
            f"{block_window} slots of pool creation (slot {creation_slot})"
        )

    return SniperResult(
        status=DetectorStatus.EVALUATED,
        origin=Origin.HISTORY,
        creation_slot=creation_slot,
        sniper_count=len(snipers),
        snipers=snipers,
    )
