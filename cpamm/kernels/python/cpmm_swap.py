"""
CPMM exact-in swap kernel.

- Fee is charged on the gross input with floor rounding:
      fee_amount = floor(amount_in * fee_bps / 10_000)
- Pricing uses `net_in = amount_in - fee_amount`:
      amount_out = floor(reserve_out * net_in / (reserve_in + net_in))
- The whole fee stays in the pool; there is no protocol share.

All intermediates are checked at u128; reported amounts are narrowed to u64.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import FeeOutOfRange, InsufficientLiquidity, ZeroAmount
from .checked_math import (
    BPS_DENOM,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    narrow_u64,
    require_uint,
)


@dataclass(frozen=True)
class SwapQuote:
    amount_in: int
    fee_amount: int
    net_in: int
    amount_out: int
    reserve_in: int
    reserve_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def require_fee_bps(fee_bps: int) -> int:
    if not isinstance(fee_bps, int) or isinstance(fee_bps, bool):
        raise FeeOutOfRange(f"fee_bps must be an int, got {type(fee_bps).__name__}")
    if not (0 <= fee_bps <= BPS_DENOM):
        raise FeeOutOfRange(f"fee_bps must be in [0, {BPS_DENOM}]: {fee_bps}")
    return fee_bps


def compute_fee_amount(*, amount_in: int, fee_bps: int) -> int:
    """Compute `floor(amount_in * fee_bps / 10_000)`."""
    require_uint("amount_in", amount_in)
    require_fee_bps(fee_bps)
    return checked_div(checked_mul(amount_in, fee_bps, bits=128), BPS_DENOM, bits=128)


def swap_exact_in(*, reserve_in: int, reserve_out: int, amount_in: int, fee_bps: int) -> SwapQuote:
    """
    Exact-in swap quote + post-state.

    A zero output is not rejected here; slippage bounds belong to the caller.
    """
    require_uint("reserve_in", reserve_in)
    require_uint("reserve_out", reserve_out)
    require_uint("amount_in", amount_in)
    require_fee_bps(fee_bps)

    if amount_in == 0:
        raise ZeroAmount("amount_in must be positive")
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity(f"cannot swap against an empty reserve: ({reserve_in}, {reserve_out})")

    fee_amount = compute_fee_amount(amount_in=amount_in, fee_bps=fee_bps)
    net_in = checked_sub(amount_in, fee_amount, bits=128)

    numerator = checked_mul(reserve_out, net_in, bits=128)
    denominator = checked_add(reserve_in, net_in, bits=128)
    amount_out = narrow_u64(checked_div(numerator, denominator, bits=128))

    # Vault balances are u64; an input that would overflow the vault fails here.
    new_reserve_in = checked_add(reserve_in, amount_in, bits=64)
    new_reserve_out = checked_sub(reserve_out, amount_out, bits=64)

    return SwapQuote(
        amount_in=amount_in,
        fee_amount=fee_amount,
        net_in=net_in,
        amount_out=amount_out,
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )
