"""
Checked fixed-width integer arithmetic.

Python ints never overflow, so the fixed widths of the pool record (u16 fee,
u64 balances, u128 intermediates) are enforced explicitly here. Every helper
either returns an exact in-range result or raises MathOverflow.
"""

from __future__ import annotations

import math

from ...errors import MathOverflow, ZeroDivision


U16_MAX = (1 << 16) - 1
U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1

BPS_DENOM = 10_000
MINIMUM_LIQUIDITY = 1_000

_MAX_BY_BITS = {16: U16_MAX, 64: U64_MAX, 128: U128_MAX}


def _bound(bits: int) -> int:
    try:
        return _MAX_BY_BITS[bits]
    except KeyError:
        raise ValueError(f"unsupported integer width: {bits}") from None


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_uint(name: str, value: int, bits: int = 64) -> int:
    """Validate that `value` is a non-negative int representable in `bits` bits."""
    _require_int(name, value)
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")
    if value > _bound(bits):
        raise MathOverflow(f"{name} does not fit in u{bits}: {value}")
    return value


def _in_range(value: int, bits: int, op: str) -> int:
    if value < 0 or value > _bound(bits):
        raise MathOverflow(f"u{bits} {op} out of range: {value}")
    return value


def checked_add(a: int, b: int, *, bits: int = 64) -> int:
    return _in_range(a + b, bits, "add")


def checked_sub(a: int, b: int, *, bits: int = 64) -> int:
    return _in_range(a - b, bits, "sub")


def checked_mul(a: int, b: int, *, bits: int = 64) -> int:
    return _in_range(a * b, bits, "mul")


def checked_div(a: int, b: int, *, bits: int = 64) -> int:
    """Floor division; a zero divisor raises ZeroDivision rather than ZeroDivisionError."""
    if b == 0:
        raise ZeroDivision()
    return _in_range(a // b, bits, "div")


def mul_div_floor(a: int, b: int, denominator: int) -> int:
    """
    Compute `floor(a * b / denominator)` with a u128 intermediate, narrowed to u64.

    This is the shared shape of every share/charge/output formula in the engine.
    """
    product = checked_mul(a, b, bits=128)
    return narrow_u64(checked_div(product, denominator, bits=128))


def narrow_u64(value: int) -> int:
    """Narrow a u128 intermediate to u64, failing instead of truncating."""
    if value < 0 or value > U64_MAX:
        raise MathOverflow(f"value does not fit in u64: {value}")
    return value


def isqrt(value: int) -> int:
    """Exact integer square root (floor). Float sqrt is wrong above 2**53."""
    _require_int("value", value)
    if value < 0:
        raise ValueError(f"isqrt of negative value: {value}")
    return math.isqrt(value)
