"""Liquidation math - eligibility, incentive, seizure and bad debt"""
from .config import DEFAULT_CONFIG, RiskConfig
from .constants import BPS, ORACLE_SCALE, U128_MAX, U64_MAX, WAD
from .fixed_point import mul_div_down, mul_div_up, saturating_sub, to_assets_up
from .logging import get_logger
from .state.market import Market

logger = get_logger("lending_model.liquidation")


def _max_borrow(collateral: int, oracle_price: int, lltv: int) -> int:
    # collateral * price * lltv / ORACLE_SCALE / BPS, rounded down twice
    collateral_value = mul_div_down(collateral, oracle_price, ORACLE_SCALE)
    return mul_div_down(collateral_value, lltv, BPS)


def is_liquidatable(
    collateral: int,
    borrow_shares: int,
    total_borrow_assets: int,
    total_borrow_shares: int,
    oracle_price: int,
    lltv: int,
) -> bool:
    """A position is liquidatable when borrowed > collateral_value * lltv

    Debt is converted from shares rounding up so it is never under-counted.
    """
    if borrow_shares == 0:
        return False

    borrowed = to_assets_up(borrow_shares, total_borrow_assets, total_borrow_shares)
    max_borrow = _max_borrow(collateral, oracle_price, lltv)
    return borrowed > max_borrow


def health_factor(collateral: int, borrowed: int, oracle_price: int, lltv: int) -> int:
    """Health factor scaled by WAD

    health >= WAD means healthy (borrowed == max_borrow is exactly WAD),
    health < WAD means liquidatable. Display only: is_liquidatable is the
    authoritative check since it rounds the debt up from shares.
    """
    if borrowed == 0:
        return U128_MAX  # Infinite health (no debt)

    max_borrow = _max_borrow(collateral, oracle_price, lltv)
    return mul_div_down(max_borrow, WAD, borrowed)


def calculate_lif(lltv: int, config: RiskConfig = DEFAULT_CONFIG) -> int:
    """Liquidation Incentive Factor in LIF_BPS

    LIF = min(maxLIF, 1 / (1 - cursor * (1 - LLTV/BPS)))

    Higher LLTV = lower LIF, lower LLTV = higher LIF. Never raises: every
    intermediate step clamps instead of failing so a liquidation can always
    be priced. A cursor term that cannot be computed counts as 0, a
    non-positive denominator yields max_lif and an oversized quotient
    saturates at u64::MAX before the max_lif cap.
    """
    one_minus_lltv = saturating_sub(BPS, lltv)

    cursor_product = config.lif_cursor * one_minus_lltv
    if cursor_product > U128_MAX or config.lif_bps == 0:
        cursor_term = 0
    else:
        cursor_term = min(cursor_product // config.lif_bps, U64_MAX)

    denominator = saturating_sub(config.lif_bps, cursor_term)
    if denominator == 0:
        return config.max_lif

    lif_numerator = config.lif_bps * config.lif_bps
    if lif_numerator > U128_MAX:
        lif = U64_MAX
    else:
        lif = min(lif_numerator // denominator, U64_MAX)

    lif = min(lif, config.max_lif)
    logger.debug("LIF for lltv %s: %s", lltv, lif)
    return lif


def calculate_seized_collateral(
    repaid_assets: int,
    oracle_price: int,
    lif: int,
    config: RiskConfig = DEFAULT_CONFIG,
) -> int:
    """seized = repaid_assets * oracle_price * LIF / ORACLE_SCALE / LIF_BPS

    Both steps round up in favor of the liquidator.
    """
    collateral_value = mul_div_up(repaid_assets, oracle_price, ORACLE_SCALE)
    return mul_div_up(collateral_value, lif, config.lif_bps)


def calculate_repaid_assets(
    seized_collateral: int,
    oracle_price: int,
    lif: int,
    config: RiskConfig = DEFAULT_CONFIG,
) -> int:
    """Loan assets owed for a given collateral seizure, rounded up"""
    quoted = mul_div_up(seized_collateral, ORACLE_SCALE, oracle_price)
    return mul_div_up(quoted, config.lif_bps, lif)


def socialize_bad_debt(market: Market, remaining_borrow_shares: int) -> int:
    """Socialize bad debt across all suppliers

    Called when liquidation leaves a position with debt but no collateral.
    The debt leaves the borrow side and the same amount leaves the supply
    side; total_supply_shares is untouched so every share is worth less.

    The caller guarantees remaining_borrow_shares <= total_borrow_shares;
    subtraction saturates rather than checking it.

    Returns the amount of bad debt socialized, in assets.
    """
    if remaining_borrow_shares == 0:
        return 0

    bad_debt = to_assets_up(
        remaining_borrow_shares,
        market.total_borrow_assets,
        market.total_borrow_shares,
    )

    market.total_borrow_shares = saturating_sub(market.total_borrow_shares, remaining_borrow_shares)
    market.total_borrow_assets = saturating_sub(market.total_borrow_assets, bad_debt)
    market.total_supply_assets = saturating_sub(market.total_supply_assets, bad_debt)

    logger.warning(
        "Socialized %s assets of bad debt (%s shares) across %s supply shares",
        bad_debt, remaining_borrow_shares, market.total_supply_shares,
    )
    return bad_debt
