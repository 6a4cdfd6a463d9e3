"""
Liquidity math kernel.

Two mint rules (Uniswap-v2 style):
- Empty pool:  shares = isqrt(amount_a * amount_b) - MINIMUM_LIQUIDITY, full amounts charged.
- Active pool: shares = min(floor(amount_a * supply / reserve_a), floor(amount_b * supply / reserve_b)),
  charges back-computed from `shares` at the current ratio (floor).

The product on first deposit is checked at u64 width; every other intermediate
is checked at u128 and narrowed back to u64.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import (
    InsufficientInitialLiquidity,
    InsufficientLiquidity,
    LiquidityRatioMismatch,
    ZeroAmount,
)
from .checked_math import MINIMUM_LIQUIDITY, checked_mul, isqrt, mul_div_floor, require_uint


@dataclass(frozen=True)
class LiquidityQuote:
    shares_minted: int
    charged_a: int
    charged_b: int
    offered_a: int
    offered_b: int
    shares_from_a: int
    shares_from_b: int
    initial: bool

    @property
    def surplus_a(self) -> int:
        """Offered beyond the ratio-correct charge; donated to reserves on commit."""
        return self.offered_a - self.charged_a

    @property
    def surplus_b(self) -> int:
        return self.offered_b - self.charged_b

    def as_tuple(self) -> tuple[int, int, int]:
        return self.shares_minted, self.charged_a, self.charged_b


def _require_offer(amount_a: int, amount_b: int) -> None:
    require_uint("amount_a", amount_a)
    require_uint("amount_b", amount_b)
    if amount_a == 0 or amount_b == 0:
        raise ZeroAmount()


def require_covers(*, offered_a: int, offered_b: int, charged_a: int, charged_b: int) -> None:
    """The caller must offer at least the ratio-correct charge of each asset."""
    if offered_a < charged_a or offered_b < charged_b:
        raise LiquidityRatioMismatch(
            f"offered ({offered_a}, {offered_b}) below charge ({charged_a}, {charged_b})"
        )


def mint_initial(*, amount_a: int, amount_b: int) -> LiquidityQuote:
    """First deposit into an empty pool."""
    _require_offer(amount_a, amount_b)

    product = checked_mul(amount_a, amount_b, bits=64)
    root = isqrt(product)
    # A root at or below the lock would underflow or mint nothing.
    if root <= MINIMUM_LIQUIDITY:
        raise InsufficientInitialLiquidity(
            f"isqrt(amount_a * amount_b) = {root} <= MINIMUM_LIQUIDITY ({MINIMUM_LIQUIDITY})"
        )
    shares = root - MINIMUM_LIQUIDITY

    return LiquidityQuote(
        shares_minted=shares,
        charged_a=amount_a,
        charged_b=amount_b,
        offered_a=amount_a,
        offered_b=amount_b,
        shares_from_a=shares,
        shares_from_b=shares,
        initial=True,
    )


def mint_proportional(
    *,
    reserve_a: int,
    reserve_b: int,
    share_supply: int,
    amount_a: int,
    amount_b: int,
) -> LiquidityQuote:
    """Ratio-preserving deposit into an active pool."""
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("share_supply", share_supply),
    ):
        require_uint(name, v)
    _require_offer(amount_a, amount_b)

    shares_from_a = mul_div_floor(amount_a, share_supply, reserve_a)
    shares_from_b = mul_div_floor(amount_b, share_supply, reserve_b)
    shares = min(shares_from_a, shares_from_b)
    if shares == 0:
        raise InsufficientLiquidity(
            f"deposit ({amount_a}, {amount_b}) mints zero shares against supply {share_supply}"
        )

    charged_a = mul_div_floor(shares, reserve_a, share_supply)
    charged_b = mul_div_floor(shares, reserve_b, share_supply)
    require_covers(offered_a=amount_a, offered_b=amount_b, charged_a=charged_a, charged_b=charged_b)

    return LiquidityQuote(
        shares_minted=shares,
        charged_a=charged_a,
        charged_b=charged_b,
        offered_a=amount_a,
        offered_b=amount_b,
        shares_from_a=shares_from_a,
        shares_from_b=shares_from_b,
        initial=False,
    )
