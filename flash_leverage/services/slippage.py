"""Pure slippage-bound and checked integer math — no I/O."""
from __future__ import annotations

from ..errors import ArithmeticOverflow, InvalidAmount
from ..models import BPS_DENOMINATOR, I128_MAX, I128_MIN

DEFAULT_SLIPPAGE_BPS = 50


def check_i128(value: int) -> int:
    """Return ``value`` unchanged, or raise if it leaves the i128 range."""
    if value < I128_MIN or value > I128_MAX:
        raise ArithmeticOverflow(f"{value} is outside the i128 range")
    return value


def trunc_div(numerator: int, denominator: int) -> int:
    """Integer division truncating toward zero (not floor)."""
    if denominator == 0:
        raise ArithmeticOverflow("division by zero")
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def mul_div(value: int, multiplier: int, denominator: int) -> int:
    """``value * multiplier / denominator`` with i128-checked intermediates.

    The product is formed before dividing, so it has to fit the range the
    pool and router accept.
    """
    product = check_i128(check_i128(value) * check_i128(multiplier))
    return check_i128(trunc_div(product, denominator))


def min_amount_out(expected: int, slippage_bps: int = DEFAULT_SLIPPAGE_BPS) -> int:
    """Smallest acceptable output for a quoted ``expected`` amount.

    ``floor(expected * (10000 - slippage_bps) / 10000)``; for example
    ``min_amount_out(1000, 50) == 995``.
    """
    if not 0 <= slippage_bps < BPS_DENOMINATOR:
        raise InvalidAmount(f"slippage_bps must be in [0, 10000), got {slippage_bps}")
    return mul_div(expected, BPS_DENOMINATOR - slippage_bps, BPS_DENOMINATOR)


def max_amount_in(expected: int, slippage_bps: int = DEFAULT_SLIPPAGE_BPS) -> int:
    """Largest acceptable input for a quoted ``expected`` amount.

    ``floor(expected * (10000 + slippage_bps) / 10000)``; for example
    ``max_amount_in(1000, 50) == 1005``.
    """
    if slippage_bps < 0:
        raise InvalidAmount(f"slippage_bps must be non-negative, got {slippage_bps}")
    return mul_div(expected, BPS_DENOMINATOR + slippage_bps, BPS_DENOMINATOR)
