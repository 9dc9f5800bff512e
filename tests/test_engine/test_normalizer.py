"""Tests for source normalization into a MetricsBundle."""

import pytest

from rugradar.engine.normalizer import concentration_band, gini, normalize
from rugradar.exceptions import InvalidIdentifierError
from rugradar.models.metrics import SourceKind
from rugradar.models.report import RiskLevel
from rugradar.sources import (
    ContractPayload,
    ContractRisk,
    HolderEntry,
    HoldersPayload,
    LiquidityPayload,
    MarketPayload,
    MetadataPayload,
    PoolInfo,
    Unavailable,
    present,
)
from tests.factories import MINT, clean_liquidity, clean_sources

NOW = 1_700_000_000.0


class TestIdentifier:
    @pytest.mark.parametrize(
        "bad",
        ["", "   ", "abc", "So1111...1112", "0" * 40, "I" * 40, "x" * 50],
    )
    def test_invalid_address_rejected(self, bad: str) -> None:
        with pytest.raises(InvalidIdentifierError):
            normalize(bad, [])

    def test_address_is_stripped(self) -> None:
        bundle, _ = normalize(f"  {MINT} ", [])
        assert bundle.token_address == MINT


class TestAvailability:
    def test_no_sources_never_fails(self) -> None:
        bundle, availability = normalize(MINT, [], now=NOW)
        assert not any(availability.values())
        assert len(bundle.unavailable_sources) == 7
        # Neutral defaults, not "safe" values
        assert bundle.liquidity.total_liquidity_sol == 0.0
        assert bundle.holders.gini == 1.0
        assert bundle.metadata.symbol == "UNKNOWN"

    def test_all_sources_present(self) -> None:
        _, availability = normalize(MINT, clean_sources(), now=NOW)
        assert all(availability.values())
        assert SourceKind.TRANSACTIONS not in availability

    def test_unavailable_marks_group(self) -> None:
        sources = [Unavailable(SourceKind.LIQUIDITY, "timeout"), present(clean_liquidity())]
        bundle, availability = normalize(MINT, sources, now=NOW)
        # First Present wins even after an Unavailable of the same kind
        assert availability[SourceKind.LIQUIDITY] is True
        assert bundle.liquidity.total_liquidity_sol == 500.0

    def test_first_present_wins(self) -> None:
        sources = [
            present(clean_liquidity(total_liquidity_sol=10.0)),
            present(clean_liquidity(total_liquidity_sol=999.0)),
        ]
        bundle, _ = normalize(MINT, sources, now=NOW)
        assert bundle.liquidity.total_liquidity_sol == 10.0


class TestLiquidity:
    def test_pools_are_summed(self) -> None:
        payload = LiquidityPayload(
            sol_price_usd=100.0,
            pools=[
                PoolInfo(liquidity_sol=30.0, liquidity_usd=3000.0, lp_burned_pct=95.0),
                PoolInfo(liquidity_usd=2000.0, lp_locked_pct=10.0),
            ],
        )
        bundle, _ = normalize(MINT, [present(payload)], now=NOW)
        liq = bundle.liquidity
        assert liq.total_liquidity_sol == pytest.approx(50.0)  # 30 + 2000/100
        assert liq.liquidity_usd == pytest.approx(5000.0)
        assert liq.lp_burned is True
        assert liq.lp_locked is False
        assert liq.pool_count == 2

    def test_sol_derived_from_usd_with_fallback_price(self) -> None:
        payload = LiquidityPayload(liquidity_usd=15_000.0)
        bundle, _ = normalize(MINT, [present(payload)], now=NOW, sol_price_fallback=150.0)
        assert bundle.liquidity.total_liquidity_sol == pytest.approx(100.0)

    def test_locked_threshold(self) -> None:
        payload = LiquidityPayload(pools=[PoolInfo(liquidity_sol=10.0, lp_locked_pct=50.0)])
        bundle, _ = normalize(MINT, [present(payload)], now=NOW)
        assert bundle.liquidity.lp_locked is True


class TestHolders:
    def test_percentages_from_amounts(self) -> None:
        holders = [HolderEntry(address=f"w{i}", amount=100.0) for i in range(20)]
        holders[0] = HolderEntry(address="creator", amount=1000.0)
        payload = HoldersPayload(holders=holders)
        bundle, _ = normalize(MINT, [present(payload)], now=NOW)
        h = bundle.holders
        # supply 1000 + 19*100 = 2900; top10 = 1000 + 9*100 = 1900
        assert h.top10_pct == pytest.approx(1900 / 2900 * 100)
        assert h.creator_pct == pytest.approx(1000 / 2900 * 100)
        assert h.total_holders == 20
        assert h.concentration_risk == RiskLevel.HIGH  # top10 ~66%, creator ~34%

    def test_bundle_wallets_from_clusters(self) -> None:
        payload = HoldersPayload(
            top10_pct=10.0, creator_pct=1.0, clusters=[["a", "b"], ["b", "c"], ["solo"]]
        )
        bundle, _ = normalize(MINT, [present(payload)], now=NOW)
        assert bundle.holders.bundle_wallets == 3

    @pytest.mark.parametrize(
        ("top10", "creator", "expected"),
        [
            (81, 0, RiskLevel.CRITICAL),
            (10, 51, RiskLevel.CRITICAL),
            (61, 0, RiskLevel.HIGH),
            (10, 31, RiskLevel.HIGH),
            (41, 0, RiskLevel.MEDIUM),
            (10, 21, RiskLevel.MEDIUM),
            (40, 20, RiskLevel.LOW),
        ],
    )
    def test_concentration_band(self, top10: float, creator: float, expected: RiskLevel) -> None:
        assert concentration_band(top10, creator) == expected

    def test_gini(self) -> None:
        assert gini([]) == 1.0
        assert gini([0.0, 0.0]) == 1.0
        assert gini([5.0, 5.0, 5.0]) == pytest.approx(0.0)
        assert gini([0.0, 0.0, 0.0, 100.0]) == pytest.approx(0.75)


class TestMarket:
    def test_age_from_created_at(self) -> None:
        payload = MarketPayload(created_at=int(NOW) - 3 * 86400)
        bundle, _ = normalize(MINT, [present(payload)], now=NOW)
        assert bundle.market.age_days == pytest.approx(3.0)
        assert bundle.market.is_pump_and_dump is False

    def test_pump_and_dump_heuristic(self) -> None:
        payload = MarketPayload(age_days=0.5, tx_count_24h=501)
        bundle, _ = normalize(MINT, [present(payload)], now=NOW)
        assert bundle.market.is_pump_and_dump is True

    def test_explicit_pump_flag_wins(self) -> None:
        payload = MarketPayload(age_days=0.5, tx_count_24h=5000, is_pump_and_dump=False)
        bundle, _ = normalize(MINT, [present(payload)], now=NOW)
        assert bundle.market.is_pump_and_dump is False


class TestContract:
    def test_inferred_from_risk_names(self) -> None:
        payload = ContractPayload(
            risks=[
                ContractRisk(name="Mint authority still enabled", level="danger"),
                ContractRisk(name="Mutable metadata", level="warn"),
                ContractRisk(name="Copycat token", level="warn"),
            ]
        )
        bundle, _ = normalize(MINT, [present(payload)], now=NOW)
        c = bundle.contract
        assert c.is_mintable is True
        assert c.has_freeze_authority is False
        assert c.renounced is False
        assert c.mutable_metadata is True
        assert c.is_copycat is True
        assert "Copycat token" in c.risk_names

    def test_authorities_set_flags(self) -> None:
        payload = ContractPayload(mint_authority=None, freeze_authority="FrZ1")
        bundle, _ = normalize(MINT, [present(payload)], now=NOW)
        assert bundle.contract.has_freeze_authority is True
        assert bundle.contract.is_mintable is False
        assert bundle.contract.renounced is False

    def test_no_authorities_means_renounced(self) -> None:
        bundle, _ = normalize(MINT, [present(ContractPayload())], now=NOW)
        assert bundle.contract.renounced is True


class TestMetadata:
    def test_socials_and_website(self) -> None:
        payload = MetadataPayload(symbol="X", telegram="t.me/x", description="   ")
        bundle, _ = normalize(MINT, [present(payload)], now=NOW)
        m = bundle.metadata
        assert m.has_socials is True
        assert m.has_website is False
        assert m.has_description is False
        assert m.name == "Unknown Token"
