"""Fixed point helpers - u128 semantics on Python ints

All values are non-negative integers bounded by U128_MAX. Anything that
leaves that range raises MathOverflow instead of wrapping.
"""
from .constants import U128_MAX, VIRTUAL_ASSETS, VIRTUAL_SHARES
from .errors import MathOverflow


def _check_u128(result: int, operation: str) -> int:
    if result < 0:
        raise MathOverflow(f"Arithmetic underflow in {operation}")
    if result > U128_MAX:
        raise MathOverflow(f"Arithmetic overflow in {operation}")
    return result

def checked_add(a: int, b: int) -> int:
    """Add with overflow checking"""
    return _check_u128(a + b, "addition")

def checked_sub(a: int, b: int) -> int:
    """Subtract with underflow checking"""
    return _check_u128(a - b, "subtraction")

def checked_mul(a: int, b: int) -> int:
    """Multiply with overflow checking"""
    return _check_u128(a * b, "multiplication")

def saturating_sub(a: int, b: int) -> int:
    return max(a - b, 0)


def mul_div_down(x: int, y: int, denominator: int) -> int:
    """floor(x * y / denominator)

    The intermediate product may exceed u128 (the on-chain version widens to
    u256); only the quotient has to fit.
    """
    if denominator == 0:
        raise MathOverflow("Division by zero")
    return _check_u128((x * y) // denominator, "mul_div_down")

def mul_div_up(x: int, y: int, denominator: int) -> int:
    """ceil(x * y / denominator)"""
    if denominator == 0:
        raise MathOverflow("Division by zero")
    return _check_u128((x * y + denominator - 1) // denominator, "mul_div_up")


# Share <-> asset conversion. The virtual offsets keep the exchange rate
# defined for an empty market.

def to_shares_down(assets: int, total_assets: int, total_shares: int) -> int:
    return mul_div_down(assets, total_shares + VIRTUAL_SHARES, total_assets + VIRTUAL_ASSETS)

def to_shares_up(assets: int, total_assets: int, total_shares: int) -> int:
    return mul_div_up(assets, total_shares + VIRTUAL_SHARES, total_assets + VIRTUAL_ASSETS)

def to_assets_down(shares: int, total_assets: int, total_shares: int) -> int:
    return mul_div_down(shares, total_assets + VIRTUAL_ASSETS, total_shares + VIRTUAL_SHARES)

def to_assets_up(shares: int, total_assets: int, total_shares: int) -> int:
    """Convert shares to assets rounding up, used for debt"""
    return mul_div_up(shares, total_assets + VIRTUAL_ASSETS, total_shares + VIRTUAL_SHARES)
