"""Category budgets and weights per report kind."""

from rugradar.models.report import Category, ReportKind

# (max_score, weight)
COMPOSITE_CATEGORIES: dict[Category, tuple[int, float]] = {
    Category.SECURITY: (100, 0.30),
    Category.FUNDAMENTALS: (100, 0.25),
    Category.TECHNICAL_ANALYSIS: (100, 0.20),
    Category.SENTIMENT: (100, 0.15),
    Category.INNOVATION: (100, 0.10),
}

SECURITY_CATEGORIES: dict[Category, tuple[int, float]] = {
    Category.CONTRACT: (25, 0.25),
    Category.LIQUIDITY: (20, 0.25),
    Category.HOLDERS: (20, 0.20),
    Category.TRADING: (15, 0.20),
    Category.MARKET: (10, 0.10),
}

CATEGORIES: dict[ReportKind, dict[Category, tuple[int, float]]] = {
    ReportKind.COMPOSITE: COMPOSITE_CATEGORIES,
    ReportKind.SECURITY: SECURITY_CATEGORIES,
}


def weights_for(kind: ReportKind) -> dict[Category, float]:
    return {category: weight for category, (_, weight) in CATEGORIES[kind].items()}
