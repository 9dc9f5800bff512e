"""Honeypot detection — can the token actually be sold?

Prefers a buy/sell simulation. Without one, falls back to transaction
history: failed sell attempts (indicator of honeypot / hidden tax / frozen
token) or many buys with no successful sell at all.
"""

from dataclasses import dataclass

from loguru import logger

from rugradar.detectors.base import NO_HISTORY, DetectorStatus, Origin
from rugradar.models.metrics import MetricsBundle
from rugradar.sources import TransactionHistory
from rugradar.utils.logger import short

MIN_RELEVANT_TXS = 3


@dataclass(frozen=True)
class HoneypotResult:
    status: DetectorStatus = DetectorStatus.NOT_EVALUATED
    origin: Origin = Origin.NONE
    reason: str | None = None
    is_honeypot: bool = False
    can_sell: bool = True
    buy_tax: float | None = None  # percentage, None when not simulated
    sell_tax: float | None = None
    total_buys: int = 0
    total_sells: int = 0
    failed_sells: int = 0

    @property
    def evaluated(self) -> bool:
        return self.status is DetectorStatus.EVALUATED

    @property
    def failed_ratio(self) -> float:
        attempts = self.total_sells + self.failed_sells
        return self.failed_sells / attempts if attempts else 0.0


def detect_honeypot(
    bundle: MetricsBundle,
    history: TransactionHistory | None,
    *,
    sell_tax_ceiling: float = 95.0,
    failed_sell_ratio: float = 0.30,
    min_buys: int = 10,
) -> HoneypotResult:
    mint = bundle.token_address
    sim = bundle.simulation

    if sim.available:
        is_honeypot = (
            sim.is_honeypot is True
            or (sim.buy_succeeded is True and sim.sell_succeeded is False)
            or sim.sell_tax > sell_tax_ceiling
        )
        can_sell = (
            sim.sell_succeeded is not False
            and sim.sell_tax <= sell_tax_ceiling
            and sim.is_honeypot is not True
        )
        result = HoneypotResult(
            status=DetectorStatus.EVALUATED,
            origin=Origin.SIMULATION,
            is_honeypot=is_honeypot,
            can_sell=can_sell,
            buy_tax=sim.buy_tax,
            sell_tax=sim.sell_tax,
        )
    elif history is not None:
        buys = sells = failed = 0
        for tx in history.transactions:
            if tx.failed:
                if tx.is_failed_sell(mint):
                    failed += 1
            elif tx.is_buy(mint):
                buys += 1
            elif tx.is_sell(mint):
                sells += 1

        if buys + sells + failed < MIN_RELEVANT_TXS:
            return HoneypotResult(reason="insufficient transactions")

        attempts = sells + failed
        ratio = failed / attempts if attempts else 0.0
        is_honeypot = (buys > min_buys and sells == 0) or ratio > failed_sell_ratio
        result = HoneypotResult(
            status=DetectorStatus.EVALUATED,
            origin=Origin.HISTORY,
            is_honeypot=is_honeypot,
            can_sell=not is_honeypot,
            total_buys=buys,
            total_sells=sells,
            failed_sells=failed,
        )
    elif bundle.trading.available:
        trading = bundle.trading
        result = HoneypotResult(
            status=DetectorStatus.EVALUATED,
            origin=Origin.SOURCE,
            is_honeypot=trading.honeypot_detected,
            can_sell=trading.can_sell and not trading.honeypot_detected,
        )
    else:
        return HoneypotResult(reason=NO_HISTORY)

    if result.is_honeypot:
        logger.info(
            f"[HONEYPOT] {short(mint)}: CONFIRMED via {result.origin} "
            f"(sell_tax={result.sell_tax}, failed={result.failed_sells}/"
            f"{result.total_sells + result.failed_sells})"
        )

    return result
