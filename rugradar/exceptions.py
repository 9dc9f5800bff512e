class AnalysisError(Exception):
    pass


class InvalidIdentifierError(AnalysisError):
    """Token or wallet identifier is not a valid address. Never retried."""

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Invalid identifier {identifier!r}: {reason}")


class AggregationInvariantError(AnalysisError):
    """Internal defect: weights, bands or budgets are inconsistent."""


class DetectorFailure(Exception):
    """Raised inside a detector. Absorbed by the runner, never surfaced."""
