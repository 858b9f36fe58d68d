"""Tests for liquidation eligibility, health factor, LIF and seizure sizing"""
from dataclasses import dataclass
import pytest
from lending_model.src.config import RiskConfig
from lending_model.src.constants import BPS, MAX_LIF, ORACLE_SCALE, U128_MAX, U64_MAX, WAD
from lending_model.src.errors import MathOverflow
from lending_model.src.liquidation_math import (
    calculate_lif,
    calculate_repaid_assets,
    calculate_seized_collateral,
    health_factor,
    is_liquidatable,
)

PRICE = 2000 * ORACLE_SCALE
LLTV = 8000


def test_liquidatable_scenario():
    """collateral 1 at 2000 with 80% lltv can borrow 1600; 1700 owed is liquidatable"""
    assert is_liquidatable(1, 1700, 1000, 1000, PRICE, LLTV) is True

def test_no_debt_is_never_liquidatable():
    for collateral in [0, 1, 10**30]:
        for price in [1, PRICE, U128_MAX]:
            assert is_liquidatable(collateral, 0, 1000, 1000, price, LLTV) is False

def test_liquidation_boundary():
    # borrowed == max_borrow is healthy
    assert is_liquidatable(1, 1600, 1000, 1000, PRICE, LLTV) is False
    assert is_liquidatable(1, 1601, 1000, 1000, PRICE, LLTV) is True

def test_debt_rounds_up():
    # 1 share of (1 asset, 2 shares) is 2/3 of an asset, counted as 1
    assert is_liquidatable(0, 1, 1, 2, PRICE, LLTV) is True

def test_zero_collateral_with_debt():
    assert is_liquidatable(0, 1, 1000, 1000, PRICE, LLTV) is True

def test_monotonic_in_borrow_shares():
    results = [is_liquidatable(1, shares, 1000, 1000, PRICE, LLTV) for shares in range(0, 3001, 50)]
    assert results == sorted(results)
    assert results[0] is False and results[-1] is True

def test_monotonic_in_collateral():
    results = [is_liquidatable(collateral, 1700, 1000, 1000, PRICE, LLTV) for collateral in range(0, 5)]
    assert results == sorted(results, reverse=True)
    assert results[0] is True and results[-1] is False

def test_monotonic_in_price():
    prices = [p * ORACLE_SCALE // 4 for p in range(1, 20_000, 97)]
    results = [is_liquidatable(1, 1700, 1000, 1000, price, LLTV) for price in prices]
    assert results == sorted(results, reverse=True)

def test_is_liquidatable_overflow():
    with pytest.raises(MathOverflow):
        is_liquidatable(U128_MAX, 1, 1, 1, U128_MAX, LLTV)


def test_health_factor_without_debt():
    for collateral, price, lltv in [(0, 1, 0), (1, PRICE, LLTV), (10**20, U128_MAX, 9999)]:
        assert health_factor(collateral, 0, price, lltv) == U128_MAX

def test_health_factor_values():
    assert health_factor(1, 1600, PRICE, LLTV) == WAD
    assert health_factor(1, 1000, PRICE, LLTV) == 16 * WAD // 10
    assert health_factor(1, 1700, PRICE, LLTV) == 1600 * WAD // 1700
    assert health_factor(0, 1, PRICE, LLTV) == 0

def test_health_factor_agrees_with_is_liquidatable():
    for shares in range(1500, 1800, 7):
        healthy = health_factor(1, shares, PRICE, LLTV) >= WAD
        assert healthy == (not is_liquidatable(1, shares, 1000, 1000, PRICE, LLTV))

def test_health_factor_exactly_wad_is_healthy():
    # borrowed == max_borrow: health is exactly WAD and the position is safe
    assert health_factor(1, 1600, PRICE, LLTV) == WAD
    assert not is_liquidatable(1, 1600, 1000, 1000, PRICE, LLTV)
    assert health_factor(1, 1601, PRICE, LLTV) < WAD
    assert is_liquidatable(1, 1601, 1000, 1000, PRICE, LLTV)


@dataclass
class LifCase:
    lltv: int
    expected: int

def test_calculate_lif_values():
    cases = [
        LifCase(10_000, 10_000),  # no risk buffer
        LifCase(9_150, 10_261),
        LifCase(8_600, 10_438),
        LifCase(8_000, 10_638),
        LifCase(6_250, 11_267),
        LifCase(0, MAX_LIF),  # 14_285 before the cap
        LifCase(12_000, 10_000),  # lltv above BPS saturates to no buffer
    ]
    for case in cases:
        lif = calculate_lif(case.lltv)
        print(f"lltv {case.lltv}: lif {lif}")
        assert lif == case.expected

def test_calculate_lif_monotonic_and_capped():
    lifs = [calculate_lif(lltv) for lltv in range(0, BPS + 1, 50)]
    assert lifs == sorted(lifs, reverse=True)
    assert all(lif <= MAX_LIF for lif in lifs)
    assert min(lifs) == calculate_lif(BPS)

def test_calculate_lif_zero_denominator_returns_max():
    # cursor of 1.0 at lltv 0 makes the denominator zero
    config = RiskConfig(lif_cursor=10_000, max_lif=15_000)
    assert calculate_lif(0, config) == 15_000
    assert calculate_lif(0, RiskConfig(lif_bps=0, max_lif=12_345)) == 12_345

def test_calculate_lif_saturates():
    # cursor term overflow counts as zero buffer
    assert calculate_lif(0, RiskConfig(lif_cursor=2**128)) == 10_000
    # oversized quotient saturates at u64::MAX before the cap
    config = RiskConfig(lif_bps=2**64, max_lif=2**65)
    assert calculate_lif(BPS, config) == U64_MAX


@dataclass
class SeizeCase:
    description: str
    repaid_assets: int
    price: int
    lif: int
    expected: int

def test_calculate_seized_collateral():
    cases = [
        SeizeCase("dust rounds up to one", 1, 1, 10_000, 1),
        SeizeCase("dust with incentive", 1, 1, 10_638, 2),
        SeizeCase("one to one price", 450, ORACLE_SCALE, 10_638, 479),
        SeizeCase("exact", 1000, 2 * ORACLE_SCALE, 11_000, 2200),
        SeizeCase("nothing repaid", 0, PRICE, MAX_LIF, 0),
    ]
    for case in cases:
        print(f"Testing: {case.description}")
        assert calculate_seized_collateral(case.repaid_assets, case.price, case.lif) == case.expected

def test_calculate_seized_collateral_overflow():
    with pytest.raises(MathOverflow):
        calculate_seized_collateral(U128_MAX, U128_MAX, 10_000)
    with pytest.raises(MathOverflow):
        calculate_seized_collateral(U128_MAX, ORACLE_SCALE, MAX_LIF)

def test_calculate_repaid_assets():
    assert calculate_repaid_assets(2200, 2 * ORACLE_SCALE, 11_000) == 1000
    assert calculate_repaid_assets(479, ORACLE_SCALE, 10_638) == 451
    with pytest.raises(MathOverflow):
        calculate_repaid_assets(100, ORACLE_SCALE, 0)
