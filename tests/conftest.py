"""Shared test fixtures."""

import pytest

from rugradar.detectors.base import DetectorConfig
from rugradar.engine.metrics import metrics
from rugradar.engine.normalizer import normalize
from rugradar.models.metrics import MetricsBundle
from rugradar.scoring.thresholds import ScoringThresholds
from tests.factories import MINT, clean_sources

NOW = 1_700_000_000.0


@pytest.fixture
def detector_config() -> DetectorConfig:
    return DetectorConfig()


@pytest.fixture
def thresholds() -> ScoringThresholds:
    return ScoringThresholds()


@pytest.fixture
def clean_bundle() -> MetricsBundle:
    bundle, _ = normalize(MINT, clean_sources(), now=NOW)
    return bundle


@pytest.fixture
def empty_bundle() -> MetricsBundle:
    bundle, _ = normalize(MINT, [], now=NOW)
    return bundle


@pytest.fixture(autouse=True)
def _reset_metrics():
    """Isolate the global pipeline metrics between tests."""
    metrics.__init__()
    yield
