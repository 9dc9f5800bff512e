"""Report types — the terminal artifact of an analysis run."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ReportKind(StrEnum):
    COMPOSITE = "composite"
    SECURITY = "security"


class Category(StrEnum):
    # Composite report
    SECURITY = "security"
    FUNDAMENTALS = "fundamentals"
    TECHNICAL_ANALYSIS = "technical_analysis"
    SENTIMENT = "sentiment"
    INNOVATION = "innovation"
    # Security report
    LIQUIDITY = "liquidity"
    HOLDERS = "holders"
    MARKET = "market"
    TRADING = "trading"
    CONTRACT = "contract"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class Severity(StrEnum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Higher = more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class RiskLevel(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class CategoryScore(BaseModel):
    """Bounded score of one category plus the findings that explain it."""

    category: Category
    score: int = Field(ge=0)
    max_score: int = Field(gt=0)
    weight: float = Field(ge=0.0, le=1.0)
    findings: list[str] = []
    insufficient_data: bool = False

    model_config = {"frozen": True}

    @property
    def ratio(self) -> float:
        return self.score / self.max_score


class Flag(BaseModel):
    """Red (risk-increasing) or green (risk-decreasing) finding."""

    severity: Severity
    category: str
    message: str

    model_config = {"frozen": True}


class Report(BaseModel):
    """Final analysis report. Immutable; a refresh builds a new one."""

    token_address: str
    token_symbol: str = "UNKNOWN"
    token_name: str = "Unknown Token"
    kind: ReportKind = ReportKind.COMPOSITE
    composite_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    recommendation: str
    categories: dict[Category, CategoryScore]
    red_flags: list[Flag] = []
    green_flags: list[Flag] = []
    unavailable_sources: list[str] = []
    analyzed_at: datetime
    analysis_time_ms: int = 0

    model_config = {"frozen": True}

    def content_dict(self) -> dict[str, Any]:
        """Deterministic part of the report (no timing fields)."""
        return self.model_dump(mode="json", exclude={"analyzed_at", "analysis_time_ms"})

    def category(self, category: Category) -> CategoryScore:
        return self.categories[category]
