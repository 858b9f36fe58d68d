"""Oracle price resolution

Oracles return collateral tokens per 1 loan token scaled by ORACLE_SCALE.
Example: if ETH = $2000 and USDC = $1, an ETH/USDC market reads 2000 * 1e36.
"""
from decimal import Decimal
from typing import Optional
from .config import DEFAULT_CONFIG, RiskConfig
from .constants import (
    DISCRIMINATOR_SIZE,
    MAX_ORACLE_PRICE_MULTIPLIER,
    ORACLE_SCALE,
    STATIC_ORACLE_MIN_SIZE,
    SWITCHBOARD_MIN_ACCOUNT_SIZE,
    U128_MAX,
)
from .errors import (
    FeedError,
    InvalidOracle,
    MathOverflow,
    OracleInvalidReturnData,
    OraclePriceTooHigh,
    OraclePriceTooLow,
    OracleStale,
    ProtocolError,
)
from .logging import get_logger
from .state.market import Market
from .state.oracle_accounts import (
    Clock,
    OracleAccount,
    OracleSource,
    PullFeedAccountData,
    SlotClock,
)

logger = get_logger("lending_model.oracle")

ORACLE_DECIMALS = 36
U128_DIGITS = len(str(U128_MAX))


def max_oracle_price() -> int:
    """Maximum oracle price (1 billion ratio), saturating at u128::MAX"""
    return min(ORACLE_SCALE * MAX_ORACLE_PRICE_MULTIPLIER, U128_MAX)


def check_price_bounds(price: int, config: RiskConfig = DEFAULT_CONFIG) -> int:
    if price < config.min_oracle_price:
        raise OraclePriceTooLow(f"Oracle price {price} below {config.min_oracle_price}")
    if price > max_oracle_price():
        raise OraclePriceTooHigh(f"Oracle price {price} above {max_oracle_price()}")
    return price


def check_oracle_identity(oracle_account: OracleAccount, market: Market) -> None:
    if oracle_account.key != market.oracle:
        raise InvalidOracle(f"Oracle {oracle_account.key} is not the market oracle {market.oracle}")


def detect_oracle_source(oracle_account: OracleAccount) -> OracleSource:
    """Account type tag first, data size for untagged accounts"""
    if oracle_account.source is not None:
        return oracle_account.source
    if len(oracle_account.data) >= SWITCHBOARD_MIN_ACCOUNT_SIZE:
        return OracleSource.SWITCHBOARD
    return OracleSource.STATIC


def decimal_to_oracle_scale(value: Decimal) -> int:
    """Convert a feed decimal (mantissa * 10^-scale) to ORACLE_SCALE

    A value like 2000.0 with scale 18 becomes mantissa * 10^(36 - 18).
    Precision beyond 36 decimals is truncated.
    """
    sign, digits, exponent = value.as_tuple()
    if not isinstance(exponent, int):
        raise OracleInvalidReturnData(f"Feed value is not finite: {value}")
    mantissa = int("".join(str(d) for d in digits))
    if mantissa == 0:
        return 0
    if exponent > 0:
        if exponent >= U128_DIGITS:
            raise MathOverflow(f"Feed value {value} overflows the oracle scale")
        mantissa *= 10**exponent
        scale = 0
    else:
        scale = -exponent

    if scale <= ORACLE_DECIMALS:
        price = mantissa * 10**(ORACLE_DECIMALS - scale)
        if price > U128_MAX:
            raise MathOverflow(f"Feed value {value} overflows the oracle scale")
        return price
    shift = scale - ORACLE_DECIMALS
    # mantissa < 10^len(digits), any larger shift truncates to 0
    if shift >= len(digits):
        return 0
    return mantissa // 10**shift


def _parse_feed(oracle_account: OracleAccount) -> PullFeedAccountData:
    try:
        return PullFeedAccountData.parse(oracle_account.data)
    except FeedError as e:
        raise OracleInvalidReturnData(str(e)) from e


def get_switchboard_price_validated(
    oracle_account: OracleAccount,
    market: Market,
    clock: Clock,
    config: RiskConfig = DEFAULT_CONFIG,
) -> int:
    """Validated price from a pull feed

    1. Oracle account matches market configuration
    2. Data is fresh (within max_oracle_staleness slots)
    3. Minimum number of oracle samples received
    4. Price within [min_oracle_price, max_oracle_price()]
    """
    check_oracle_identity(oracle_account, market)
    feed = _parse_feed(oracle_account)
    try:
        value = feed.get_value(
            clock.slot,
            config.max_oracle_staleness,
            config.min_oracle_samples,
            True,  # only_positive
        )
    except FeedError as e:
        raise OracleStale(str(e)) from e
    return check_price_bounds(decimal_to_oracle_scale(value), config)


def get_switchboard_price(
    oracle_account: OracleAccount,
    market: Market,
    config: RiskConfig = DEFAULT_CONFIG,
) -> int:
    """Feed price without the clock-dependent staleness and sample checks"""
    check_oracle_identity(oracle_account, market)
    feed = _parse_feed(oracle_account)
    value = feed.value()
    if value <= 0:
        raise OracleStale(f"Feed value is not positive: {value}")
    return check_price_bounds(decimal_to_oracle_scale(value), config)


def parse_static_oracle_price(data: bytes, config: RiskConfig = DEFAULT_CONFIG) -> int:
    """[8 discriminator][1 bump][16 LE price], trailing bytes ignored"""
    if len(data) < STATIC_ORACLE_MIN_SIZE:
        raise OracleInvalidReturnData(f"Static oracle data is {len(data)} bytes, need {STATIC_ORACLE_MIN_SIZE}")
    price = int.from_bytes(data[DISCRIMINATOR_SIZE + 1:STATIC_ORACLE_MIN_SIZE], "little")
    return check_price_bounds(price, config)


def get_oracle_price_validated(
    oracle_account: OracleAccount,
    market: Market,
    clock: Optional[Clock] = None,
    config: RiskConfig = DEFAULT_CONFIG,
) -> int:
    """Validated oracle price from either a pull feed or a static oracle

    A pull feed that fails validation falls back to reading the same
    account as a static oracle. An oracle identity mismatch never falls back.
    """
    check_oracle_identity(oracle_account, market)

    source = detect_oracle_source(oracle_account)
    logger.debug("Oracle %s detected as %s", oracle_account.key, source.value)
    if source is OracleSource.SWITCHBOARD:
        if clock is None:
            clock = SlotClock.get()
        try:
            return get_switchboard_price_validated(oracle_account, market, clock, config)
        except InvalidOracle:
            raise
        except ProtocolError as e:
            logger.warning("Pull feed %s rejected (%s), reading as static oracle", oracle_account.key, e)
        return parse_static_oracle_price(bytes(oracle_account.data), config)

    return parse_static_oracle_price(oracle_account.data, config)
