# -*- coding: utf-8 -*-
"""
vending.math.safe_uint
======================

Checked unsigned-integer helpers for the vending contracts.

Goals
-----
- U256-oriented arithmetic that never uses Python floats.
- Fail-fast: overflow, underflow and division by zero raise typed errors
  (`ArithmeticOverflowError`, `ArithmeticUnderflowError`,
  `DivisionByZeroError`), which revert the enclosing transaction.
- Basis-point helpers with an explicit rounding direction (floor).
"""

from __future__ import annotations

from typing import Final

from ..errors import ArithmeticOverflowError, ArithmeticUnderflowError, DivisionByZeroError

U256_MAX: Final[int] = (1 << 256) - 1
BPS_DENOMINATOR: Final[int] = 10_000


def require_u256(*xs: int) -> None:
    """Raise unless every argument is an int in [0, U256_MAX]."""
    for x in xs:
        if not isinstance(x, int) or isinstance(x, bool):
            raise TypeError(f"expected int, got {type(x).__name__}")
        if x < 0:
            raise ArithmeticUnderflowError(value=x)
        if x > U256_MAX:
            raise ArithmeticOverflowError(value=x)


def u256_add(x: int, y: int) -> int:
    """Checked add: raise on overflow."""
    require_u256(x, y)
    s = x + y
    if s > U256_MAX:
        raise ArithmeticOverflowError(op="add", x=x, y=y)
    return s


def u256_sub(x: int, y: int) -> int:
    """Checked sub: raise on underflow (y > x)."""
    require_u256(x, y)
    if y > x:
        raise ArithmeticUnderflowError(op="sub", x=x, y=y)
    return x - y


def u256_mul(x: int, y: int) -> int:
    """Checked multiply: raise on overflow."""
    require_u256(x, y)
    p = x * y
    if p > U256_MAX:
        raise ArithmeticOverflowError(op="mul", x=x, y=y)
    return p


def u256_div(x: int, y: int) -> int:
    """Checked divide (floor)."""
    require_u256(x, y)
    if y == 0:
        raise DivisionByZeroError(op="div", x=x)
    return x // y


def u256_mul_div_down(x: int, y: int, d: int) -> int:
    """
    floor((x*y)/d). The intermediate product must itself fit in U256, so that
    the result matches what a 256-bit machine would compute.
    """
    return u256_div(u256_mul(x, y), d)


def require_bps(bps: int) -> int:
    require_u256(bps)
    if bps > BPS_DENOMINATOR:
        raise ArithmeticOverflowError("UINT: bps above 100%", bps=bps)
    return bps


def apply_discount_bps(amount: int, bps: int) -> int:
    """
    Price after a `bps` discount, rounded down:

        floor(amount * (10_000 - bps) / 10_000)

    For whole-percent discounts D this equals floor(amount * (100 - D) / 100).
    """
    require_bps(bps)
    return u256_mul_div_down(amount, BPS_DENOMINATOR - bps, BPS_DENOMINATOR)


def percent_to_bps(percent: int) -> int:
    return require_bps(u256_mul(percent, 100))


__all__ = [
    "U256_MAX",
    "BPS_DENOMINATOR",
    "require_u256",
    "u256_add",
    "u256_sub",
    "u256_mul",
    "u256_div",
    "u256_mul_div_down",
    "require_bps",
    "apply_discount_bps",
    "percent_to_bps",
]
