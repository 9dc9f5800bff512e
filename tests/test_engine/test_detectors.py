"""Tests for bundle, sniper, wash-trading and honeypot detectors."""

import pytest

from rugradar.detectors.base import DetectorConfig, DetectorStatus, Origin
from rugradar.detectors.bundle import detect_bundles
from rugradar.detectors.honeypot import detect_honeypot
from rugradar.detectors.runner import run_detectors, run_detectors_concurrently
from rugradar.detectors.sniper import detect_snipers
from rugradar.detectors.wash_trading import detect_wash_trading, find_cycles
from rugradar.engine.metrics import metrics
from rugradar.engine.normalizer import normalize
from rugradar.exceptions import DetectorFailure
from rugradar.models.metrics import MetricsBundle
from rugradar.sources import TransactionHistory, present
from tests.factories import (
    MINT,
    OTHER_MINT,
    buy_tx,
    clean_simulation,
    clean_trading,
    fund_tx,
    pool_tx,
    sell_tx,
    token_transfer_tx,
)


def _bundle_with(*payloads) -> MetricsBundle:
    bundle, _ = normalize(MINT, [present(p) for p in payloads], now=1_700_000_000.0)
    return bundle


class TestBundleDetector:
    def test_transitive_merge_of_shared_funders(self, empty_bundle: MetricsBundle) -> None:
        """F1 funds A,B and F2 funds B,C: one cluster of three, not two of two."""
        history = TransactionHistory(
            transactions=[
                fund_tx("f1", "F1", "A", 90),
                fund_tx("f2", "F1", "B", 90),
                fund_tx("f3", "F2", "B", 91),
                fund_tx("f4", "F2", "C", 91),
                buy_tx("b1", "A", 100),
                buy_tx("b2", "B", 100),
                buy_tx("b3", "C", 100),
            ]
        )
        result = detect_bundles(empty_bundle, history, min_wallets=3)
        assert result.status == DetectorStatus.EVALUATED
        assert result.origin == Origin.HISTORY
        assert result.bundle_count == 1
        assert result.bundle_bots == 3
        assert result.clusters == (("A", "B", "C"),)

    def test_unfunded_same_slot_buyers_are_not_a_bundle(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            transactions=[buy_tx(f"b{i}", f"W{i}", 100) for i in range(5)]
        )
        result = detect_bundles(empty_bundle, history, min_wallets=3)
        assert result.evaluated
        assert result.bundle_count == 0
        assert not result.detected

    def test_funding_after_buy_is_ignored(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            transactions=[
                buy_tx("b1", "A", 100),
                buy_tx("b2", "B", 100),
                buy_tx("b3", "C", 100),
                fund_tx("f1", "F", "A", 120),
                fund_tx("f2", "F", "B", 120),
                fund_tx("f3", "F", "C", 120),
            ]
        )
        assert detect_bundles(empty_bundle, history).bundle_count == 0

    def test_different_slots_do_not_bundle(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            transactions=[
                fund_tx("f1", "F", "A", 90),
                fund_tx("f2", "F", "B", 90),
                fund_tx("f3", "F", "C", 90),
                buy_tx("b1", "A", 100),
                buy_tx("b2", "B", 101),
                buy_tx("b3", "C", 102),
            ]
        )
        assert detect_bundles(empty_bundle, history).bundle_count == 0

    def test_falls_back_to_trading_source(self) -> None:
        bundle = _bundle_with(clean_trading(bundle_count=2, bundle_bots=9))
        result = detect_bundles(bundle, None)
        assert result.origin == Origin.SOURCE
        assert result.bundle_count == 2
        assert result.bundle_bots == 9

    def test_not_evaluated_without_data(self, empty_bundle: MetricsBundle) -> None:
        result = detect_bundles(empty_bundle, None)
        assert result.status == DetectorStatus.NOT_EVALUATED
        assert result.reason


class TestSniperDetector:
    def test_window_after_pool_creation(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            creator="DEV",
            transactions=[
                pool_tx("p", "DEV", 100),
                buy_tx("d", "DEV", 100),  # creator excluded
                buy_tx("s1", "S1", 100),
                buy_tx("s2", "S2", 102),
                buy_tx("late", "L", 103),  # delta == window
                buy_tx("s1again", "S1", 110),
            ],
        )
        result = detect_snipers(empty_bundle, history, block_window=3)
        assert result.creation_slot == 100
        assert result.sniper_count == 2
        assert result.snipers == ("S1", "S2")
        assert result.detected

    def test_buys_before_creation_are_not_snipes(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            pool_created_slot=100,
            transactions=[buy_tx("early", "E", 95), buy_tx("s1", "S1", 101)],
        )
        result = detect_snipers(empty_bundle, history, block_window=3)
        assert result.snipers == ("S1",)

    def test_explicit_creation_slot_wins(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            pool_created_slot=50,
            transactions=[pool_tx("p", "DEV", 100), buy_tx("b", "X", 100)],
        )
        result = detect_snipers(empty_bundle, history, block_window=3)
        assert result.creation_slot == 50
        assert result.sniper_count == 0

    def test_unknown_creation_slot(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(transactions=[buy_tx("b", "X", 100)])
        result = detect_snipers(empty_bundle, history)
        assert result.status == DetectorStatus.NOT_EVALUATED
        assert "creation slot" in (result.reason or "")

    def test_falls_back_to_trading_source(self) -> None:
        bundle = _bundle_with(clean_trading(snipers=4))
        result = detect_snipers(bundle, None)
        assert result.origin == Origin.SOURCE
        assert result.sniper_count == 4


class TestWashTradingDetector:
    def test_find_cycles(self) -> None:
        edges = {("A", "B"): 1, ("B", "A"): 1, ("B", "C"): 1, ("C", "A"): 1, ("X", "Y"): 1}
        cycles = find_cycles(edges)  # type: ignore[arg-type]
        assert ("A", "B") in cycles
        assert ("A", "B", "C") in cycles
        assert len(cycles) == 2

    def test_two_cycle_flagged_without_liquidity(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            transactions=[
                buy_tx("price", "P", 1000, ts=1000, tokens=1000, sol=1.0),
                token_transfer_tx("t1", "A", "B", ts=1100),
                token_transfer_tx("t2", "B", "A", ts=1200),
            ]
        )
        result = detect_wash_trading(empty_bundle, history, lookback_sec=3600, volume_ratio=0.5)
        assert result.cycle_count == 1
        assert result.cycle_volume_sol == pytest.approx(2.0)  # 2000 tokens @ 0.001 SOL
        assert result.threshold_sol == 0.0
        assert result.is_wash_trading
        assert result.wallets == ("A", "B")

    def test_three_cycle_below_liquidity_threshold(self, clean_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            transactions=[
                buy_tx("price", "P", 1000, ts=1000, tokens=1000, sol=1.0),
                token_transfer_tx("t1", "A", "B", ts=1100),
                token_transfer_tx("t2", "B", "C", ts=1200),
                token_transfer_tx("t3", "C", "A", ts=1300),
            ]
        )
        result = detect_wash_trading(clean_bundle, history, lookback_sec=3600, volume_ratio=0.5)
        assert result.cycle_count == 1
        assert result.threshold_sol == pytest.approx(250.0)  # 0.5 * 500 SOL
        assert not result.is_wash_trading

    def test_transfers_outside_lookback_ignored(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            transactions=[
                buy_tx("price", "P", 9000, ts=9000),
                token_transfer_tx("t1", "A", "B", ts=1000),
                token_transfer_tx("t2", "B", "A", ts=9500),
            ]
        )
        result = detect_wash_trading(empty_bundle, history, lookback_sec=3600)
        assert result.cycle_count == 0
        assert not result.is_wash_trading

    def test_buy_then_sell_is_not_a_cycle(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            transactions=[buy_tx("b", "A", 100, ts=1000), sell_tx("s", "A", 101, ts=1100)]
        )
        result = detect_wash_trading(empty_bundle, history)
        assert result.cycle_count == 0

    def test_falls_back_to_trading_source(self) -> None:
        bundle = _bundle_with(clean_trading(wash_trading=True))
        result = detect_wash_trading(bundle, None)
        assert result.origin == Origin.SOURCE
        assert result.detected


class TestHoneypotDetector:
    def test_clean_simulation(self, clean_bundle: MetricsBundle) -> None:
        result = detect_honeypot(clean_bundle, None)
        assert result.origin == Origin.SIMULATION
        assert not result.is_honeypot
        assert result.can_sell
        assert result.sell_tax == 0.0

    def test_sell_tax_above_ceiling(self) -> None:
        bundle = _bundle_with(clean_simulation(sell_tax=96.0))
        result = detect_honeypot(bundle, None, sell_tax_ceiling=95.0)
        assert result.is_honeypot
        assert not result.can_sell

    def test_sell_tax_at_ceiling_is_sellable(self) -> None:
        bundle = _bundle_with(clean_simulation(sell_tax=95.0))
        result = detect_honeypot(bundle, None, sell_tax_ceiling=95.0)
        assert not result.is_honeypot
        assert result.can_sell

    def test_buy_ok_sell_failed(self) -> None:
        bundle = _bundle_with(clean_simulation(sell_succeeded=False))
        result = detect_honeypot(bundle, None)
        assert result.is_honeypot
        assert not result.can_sell

    def test_history_no_sells(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            transactions=[buy_tx(f"b{i}", f"W{i}", 100 + i) for i in range(11)]
        )
        result = detect_honeypot(empty_bundle, history, min_buys=10)
        assert result.origin == Origin.HISTORY
        assert result.is_honeypot
        assert not result.can_sell
        assert result.total_buys == 11

    def test_history_failed_sell_ratio(self, empty_bundle: MetricsBundle) -> None:
        txs = [buy_tx("b0", "W0", 100)]
        txs += [sell_tx(f"s{i}", f"W{i}", 200 + i) for i in range(5)]
        txs += [sell_tx(f"f{i}", f"W{i}", 300 + i, failed=True) for i in range(3)]
        result = detect_honeypot(empty_bundle, TransactionHistory(transactions=txs))
        assert result.failed_sells == 3
        assert result.failed_ratio == pytest.approx(3 / 8)
        assert result.is_honeypot

    def test_history_healthy(self, empty_bundle: MetricsBundle) -> None:
        txs = [buy_tx("b0", "W0", 100)]
        txs += [sell_tx(f"s{i}", f"W{i}", 200 + i) for i in range(10)]
        txs += [sell_tx("f0", "W0", 300, failed=True)]
        result = detect_honeypot(empty_bundle, TransactionHistory(transactions=txs))
        assert not result.is_honeypot
        assert result.can_sell

    def test_only_failed_sells_of_the_token_count(self, empty_bundle: MetricsBundle) -> None:
        txs = [buy_tx("b0", "W0", 100)]
        txs += [sell_tx(f"s{i}", f"W{i}", 200 + i) for i in range(5)]
        txs += [
            buy_tx(f"fb{i}", f"W{i}", 300 + i).model_copy(update={"transaction_error": "slippage"})
            for i in range(3)
        ]
        txs += [sell_tx(f"fo{i}", f"W{i}", 400 + i, failed=True, mint=OTHER_MINT) for i in range(3)]
        result = detect_honeypot(empty_bundle, TransactionHistory(transactions=txs))
        assert result.failed_sells == 0
        assert not result.is_honeypot

    def test_history_too_small(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(transactions=[buy_tx("b", "W", 1), sell_tx("s", "W", 2)])
        result = detect_honeypot(empty_bundle, history)
        assert result.status == DetectorStatus.NOT_EVALUATED

    def test_trading_source(self) -> None:
        bundle = _bundle_with(clean_trading(honeypot_detected=True, can_sell=False))
        result = detect_honeypot(bundle, None)
        assert result.origin == Origin.SOURCE
        assert result.is_honeypot
        assert not result.can_sell


class TestRunner:
    def test_all_not_evaluated_without_data(self, empty_bundle: MetricsBundle) -> None:
        results = run_detectors(empty_bundle, None, DetectorConfig())
        assert results.not_evaluated == ["bundle", "sniper", "wash_trading", "honeypot"]

    def test_failure_is_absorbed(self, clean_bundle: MetricsBundle, monkeypatch) -> None:
        def _boom(*args, **kwargs):
            raise DetectorFailure("rpc exploded")

        monkeypatch.setattr("rugradar.detectors.runner.detect_snipers", _boom)
        results = run_detectors(clean_bundle, None, DetectorConfig())

        assert results.sniper.status == DetectorStatus.NOT_EVALUATED
        assert "rpc exploded" in (results.sniper.reason or "")
        assert results.bundle.evaluated
        assert results.honeypot.evaluated
        assert metrics.get_summary()["detector_failures"] == {"sniper": 1}

    def test_unexpected_exception_is_absorbed(self, clean_bundle: MetricsBundle, monkeypatch) -> None:
        def _boom(*args, **kwargs):
            raise ZeroDivisionError("bad math")

        monkeypatch.setattr("rugradar.detectors.runner.detect_wash_trading", _boom)
        results = run_detectors(clean_bundle, None, DetectorConfig())
        assert results.wash_trading.status == DetectorStatus.NOT_EVALUATED
        assert results.not_evaluated == ["wash_trading"]

    @pytest.mark.asyncio
    async def test_concurrent_matches_sequential(self, empty_bundle: MetricsBundle) -> None:
        history = TransactionHistory(
            creator="DEV",
            transactions=[
                pool_tx("p", "DEV", 100),
                fund_tx("f1", "F", "A", 90),
                fund_tx("f2", "F", "B", 90),
                fund_tx("f3", "F", "C", 90),
                buy_tx("b1", "A", 100),
                buy_tx("b2", "B", 100),
                buy_tx("b3", "C", 100),
                sell_tx("s1", "A", 150),
            ],
        )
        config = DetectorConfig()
        sequential = run_detectors(empty_bundle, history, config)
        concurrent = await run_detectors_concurrently(empty_bundle, history, config)
        assert concurrent == sequential
        assert sequential.bundle.bundle_count == 1
        assert sequential.sniper.sniper_count == 3
