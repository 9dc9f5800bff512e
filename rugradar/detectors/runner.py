"""Run the four pattern detectors over one bundle.

Detectors are independent: a crash in one never affects the others. The
failing detector is reported as not evaluated with the error as reason.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from rugradar.detectors.base import DetectorConfig, DetectorStatus
from rugradar.detectors.bundle import BundleResult, detect_bundles
from rugradar.detectors.honeypot import HoneypotResult, detect_honeypot
from rugradar.detectors.sniper import SniperResult, detect_snipers
from rugradar.detectors.wash_trading import WashTradingResult, detect_wash_trading
from rugradar.engine.metrics import metrics
from rugradar.models.metrics import MetricsBundle
from rugradar.sources import TransactionHistory
from rugradar.utils.logger import short


@dataclass(frozen=True)
class DetectorResults:
    bundle: BundleResult
    sniper: SniperResult
    wash_trading: WashTradingResult
    honeypot: HoneypotResult

    @property
    def not_evaluated(self) -> list[str]:
        return [
            name
            for name, result in self._items()
            if result.status is DetectorStatus.NOT_EVALUATED
        ]

    def _items(self) -> list[tuple[str, Any]]:
        return [
            ("bundle", self.bundle),
            ("sniper", self.sniper),
            ("wash_trading", self.wash_trading),
            ("honeypot", self.honeypot),
        ]


def _plan(
    bundle: MetricsBundle,
    history: TransactionHistory | None,
    config: DetectorConfig,
) -> list[tuple[str, Callable[[], Any], type]]:
    return [
        (
            "bundle",
            lambda: detect_bundles(bundle, history, min_wallets=config.bundle_min_wallets),
            BundleResult,
        ),
        (
            "sniper",
            lambda: detect_snipers(bundle, history, block_window=config.sniper_block_window),
            SniperResult,
        ),
        (
            "wash_trading",
            lambda: detect_wash_trading(
                bundle,
                history,
                lookback_sec=config.wash_lookback_sec,
                volume_ratio=config.wash_volume_ratio,
            ),
            WashTradingResult,
        ),
        (
            "honeypot",
            lambda: detect_honeypot(
                bundle,
                history,
                sell_tax_ceiling=config.honeypot_sell_tax_ceiling,
                failed_sell_ratio=config.honeypot_failed_sell_ratio,
                min_buys=config.honeypot_min_buys,
            ),
            HoneypotResult,
        ),
    ]


def _guarded(name: str, fn: Callable[[], Any], result_type: type, address: str) -> Any:
    try:
        return fn()
    except Exception as e:
        logger.warning(f"[DETECTOR] {name} failed for {short(address)}: {e}")
        metrics.record_detector_failure(name)
        return result_type(status=DetectorStatus.NOT_EVALUATED, reason=f"detector error: {e}")


def run_detectors(
    bundle: MetricsBundle,
    tx_history: TransactionHistory | None = None,
    config: DetectorConfig | None = None,
) -> DetectorResults:
    config = config or DetectorConfig.from_settings()
    results = {
        name: _guarded(name, fn, result_type, bundle.token_address)
        for name, fn, result_type in _plan(bundle, tx_history, config)
    }
    return DetectorResults(**results)


async def run_detectors_concurrently(
    bundle: MetricsBundle,
    tx_history: TransactionHistory | None = None,
    config: DetectorConfig | None = None,
) -> DetectorResults:
    """Same as run_detectors, each detector offloaded to a worker thread."""
    config = config or DetectorConfig.from_settings()
    plan = _plan(bundle, tx_history, config)
    outputs = await asyncio.gather(
        *(
            asyncio.to_thread(_guarded, name, fn, result_type, bundle.token_address)
            for name, fn, result_type in plan
        )
    )
    return DetectorResults(**{name: out for (name, _, _), out in zip(plan, outputs)})
