"""Shared detector plumbing: evaluation status and tunables."""

from dataclasses import dataclass
from enum import StrEnum

from config.settings import settings


class DetectorStatus(StrEnum):
    EVALUATED = "evaluated"
    NOT_EVALUATED = "not_evaluated"


class Origin(StrEnum):
    """Where a detector result came from."""

    HISTORY = "history"  # computed from raw transactions
    SOURCE = "source"  # adopted from a collector's pre-computed trading metrics
    SIMULATION = "simulation"  # buy/sell simulation
    NONE = "none"


NO_HISTORY = "no transaction history"


@dataclass(frozen=True)
class DetectorConfig:
    bundle_min_wallets: int = 3
    sniper_block_window: int = 3
    wash_lookback_sec: int = 3600
    wash_volume_ratio: float = 0.5
    honeypot_sell_tax_ceiling: float = 95.0
    honeypot_failed_sell_ratio: float = 0.30
    honeypot_min_buys: int = 10

    @classmethod
    def from_settings(cls) -> "DetectorConfig":
        return cls(
            bundle_min_wallets=settings.bundle_min_wallets,
            sniper_block_window=settings.sniper_block_window,
            wash_lookback_sec=settings.wash_lookback_sec,
            wash_volume_ratio=settings.wash_volume_ratio,
            honeypot_sell_tax_ceiling=settings.honeypot_sell_tax_ceiling,
            honeypot_failed_sell_ratio=settings.honeypot_failed_sell_ratio,
            honeypot_min_buys=settings.honeypot_min_buys,
        )
