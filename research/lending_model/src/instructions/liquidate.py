"""Liquidation settlement

read oracle -> assess -> incentive -> seize -> socialize. Accounting is
applied to copies of the market and position and written back only once
every step has succeeded, so a failed liquidation leaves both untouched.
Token transfers are left to the caller.
"""
from dataclasses import dataclass, fields, replace
from typing import Optional
from ..config import DEFAULT_CONFIG, RiskConfig
from ..errors import InvalidPositionError
from ..fixed_point import checked_sub, saturating_sub, to_assets_up, to_shares_up
from ..liquidation_math import (
    calculate_lif,
    calculate_repaid_assets,
    calculate_seized_collateral,
    is_liquidatable,
    socialize_bad_debt,
)
from ..logging import get_logger
from ..oracle import get_oracle_price_validated
from ..state.market import Market
from ..state.oracle_accounts import Clock, OracleAccount
from ..state.position import Position

logger = get_logger("lending_model.liquidate")


@dataclass
class LiquidationResult:
    repaid_assets: int
    repaid_shares: int
    seized_assets: int
    bad_debt_assets: int
    bad_debt_shares: int
    lif: int
    oracle_price: int


def _commit(target, source) -> None:
    for field in fields(target):
        setattr(target, field.name, getattr(source, field.name))


def liquidate(
    market: Market,
    position: Position,
    oracle_account: OracleAccount,
    seized_assets: int = 0,
    repaid_shares: int = 0,
    clock: Optional[Clock] = None,
    config: RiskConfig = DEFAULT_CONFIG,
) -> LiquidationResult:
    """Liquidate an unhealthy position

    Exactly one of seized_assets (collateral to take) or repaid_shares
    (debt shares to repay) must be non-zero; the other side is sized from
    the oracle price and the market's LIF.

    A position that already holds no collateral but still owes shares has
    nothing left to seize. It is settled with both amounts zero: all of its
    remaining debt is socialized to suppliers.
    """
    settle_bad_debt = position.has_bad_debt()
    if settle_bad_debt:
        if seized_assets or repaid_shares:
            raise InvalidPositionError(f"Position {position.user} has no collateral, settle it with zero amounts")
    elif (seized_assets == 0) == (repaid_shares == 0):
        raise InvalidPositionError("Exactly one of seized_assets or repaid_shares must be non-zero")

    oracle_price = get_oracle_price_validated(oracle_account, market, clock, config)

    liquidatable = is_liquidatable(
        position.collateral,
        position.borrow_shares,
        market.total_borrow_assets,
        market.total_borrow_shares,
        oracle_price,
        market.lltv,
    )
    logger.debug("Position %s liquidatable at price %s: %s", position.user, oracle_price, liquidatable)
    if not liquidatable:
        raise InvalidPositionError(f"Position {position.user} is healthy")

    lif = calculate_lif(market.lltv, config)

    if settle_bad_debt:
        repaid_assets = 0
    elif seized_assets > 0:
        repaid_assets = calculate_repaid_assets(seized_assets, oracle_price, lif, config)
        repaid_shares = to_shares_up(repaid_assets, market.total_borrow_assets, market.total_borrow_shares)
    else:
        repaid_assets = to_assets_up(repaid_shares, market.total_borrow_assets, market.total_borrow_shares)
        seized_assets = calculate_seized_collateral(repaid_assets, oracle_price, lif, config)

    if seized_assets > position.collateral:
        raise InvalidPositionError(f"Cannot seize {seized_assets}, position holds {position.collateral}")
    if repaid_shares > position.borrow_shares:
        raise InvalidPositionError(f"Cannot repay {repaid_shares} shares, position owes {position.borrow_shares}")

    new_market = replace(market)
    new_position = replace(position)

    new_position.borrow_shares = checked_sub(new_position.borrow_shares, repaid_shares)
    new_position.collateral = checked_sub(new_position.collateral, seized_assets)
    new_market.total_borrow_shares = saturating_sub(new_market.total_borrow_shares, repaid_shares)
    new_market.total_borrow_assets = saturating_sub(new_market.total_borrow_assets, repaid_assets)

    bad_debt_shares = 0
    bad_debt_assets = 0
    if new_position.has_bad_debt():
        bad_debt_shares = new_position.borrow_shares
        bad_debt_assets = socialize_bad_debt(new_market, bad_debt_shares)
        new_position.borrow_shares = 0

    _commit(market, new_market)
    _commit(position, new_position)

    logger.info(
        "Liquidated %s: repaid %s assets (%s shares), seized %s collateral, bad debt %s",
        position.user, repaid_assets, repaid_shares, seized_assets, bad_debt_assets,
    )
    return LiquidationResult(
        repaid_assets=repaid_assets,
        repaid_shares=repaid_shares,
        seized_assets=seized_assets,
        bad_debt_assets=bad_debt_assets,
        bad_debt_shares=bad_debt_shares,
        lif=lif,
        oracle_price=oracle_price,
    )
