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
from rugradar.models.report import (
    Category,
    CategoryScore,
    Flag,
    Report,
    ReportKind,
    RiskLevel,
    Severity,
)
from rugradar.models.transaction import NativeTransfer, TokenTransfer, Transaction

__all__ = [
    "AvailabilityMap",
    "Category",
    "CategoryScore",
    "ContractMetrics",
    "Flag",
    "HolderMetrics",
    "LiquidityMetrics",
    "MarketMetrics",
    "MetadataMetrics",
    "MetricsBundle",
    "NativeTransfer",
    "Report",
    "ReportKind",
    "RiskLevel",
    "Severity",
    "SimulationMetrics",
    "SourceKind",
    "TokenTransfer",
    "TradingMetrics",
    "Transaction",
]
