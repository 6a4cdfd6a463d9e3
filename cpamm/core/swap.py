"""
Exact-in swaps against a constant-product pool.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import AmmError, InsufficientLiquidity, MinimumOutputBalanceExceed, SameTokenSwap, ZeroAmount
from ..kernels.python.checked_math import require_uint
from ..kernels.python.cpmm_swap import SwapQuote, swap_exact_in
from ..state.custody import Amount, AssetId
from ..state.pools import PoolState
from .reconcile import apply_observed


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapPlan:
    asset_in: AssetId
    asset_out: AssetId
    a_to_b: bool
    quote: SwapQuote

    @property
    def amount_out(self) -> Amount:
        return self.quote.amount_out


def quote_swap(
    pool: PoolState,
    from_asset_id: AssetId,
    amount_in: Amount,
    minimum_amount_out: Amount,
    *,
    to_asset_id: Optional[AssetId] = None,
) -> SwapPlan:
    """
    Price an exact-in swap without modifying the pool.

    Checks run in this order: same-asset, zero input, pool validity, direction,
    empty reserve, pricing, slippage bound.
    """
    try:
        if to_asset_id is not None and to_asset_id == from_asset_id:
            raise SameTokenSwap(f"cannot swap {from_asset_id!r} for itself")
        if amount_in == 0:
            raise ZeroAmount("amount_in must be positive")
        require_uint("amount_in", amount_in)
        require_uint("minimum_amount_out", minimum_amount_out)
        pool.validate()

        reserve_in, reserve_out, a_to_b = pool.resolve_direction(from_asset_id, to_asset_id)
        if reserve_in == 0 or reserve_out == 0:
            raise InsufficientLiquidity(f"pool reserves are empty: ({pool.reserve_a}, {pool.reserve_b})")

        quote = swap_exact_in(
            reserve_in=reserve_in,
            reserve_out=reserve_out,
            amount_in=amount_in,
            fee_bps=pool.fee_bps,
        )
        if quote.amount_out < minimum_amount_out:
            raise MinimumOutputBalanceExceed(
                f"amount_out {quote.amount_out} < minimum_amount_out {minimum_amount_out}"
            )
    except AmmError as exc:
        logger.debug("swap rejected: %s", exc.code)
        raise

    asset_out = pool.asset_b_id if a_to_b else pool.asset_a_id
    logger.debug(
        "swap quote: %d %s -> %d %s (fee=%d)",
        amount_in,
        from_asset_id,
        quote.amount_out,
        asset_out,
        quote.fee_amount,
    )
    return SwapPlan(asset_in=from_asset_id, asset_out=asset_out, a_to_b=a_to_b, quote=quote)


def swap(
    pool: PoolState,
    from_asset_id: AssetId,
    amount_in: Amount,
    minimum_amount_out: Amount,
    *,
    to_asset_id: Optional[AssetId] = None,
) -> Amount:
    """
    Compute the output amount of an exact-in swap.

        fee_amount = floor(amount_in * fee_bps / 10_000)
        net_in = amount_in - fee_amount
        amount_out = floor(reserve_out * net_in / (reserve_in + net_in))

    Raises:
        SameTokenSwap: If `to_asset_id` equals `from_asset_id`
        ZeroAmount: If amount_in == 0
        InvalidMint: If the assets do not belong to this pool
        InsufficientLiquidity: If either reserve is zero
        MinimumOutputBalanceExceed: If amount_out < minimum_amount_out
    """
    return quote_swap(pool, from_asset_id, amount_in, minimum_amount_out, to_asset_id=to_asset_id).amount_out


def commit_swap(pool: PoolState, *, observed_reserve_a: Amount, observed_reserve_b: Amount) -> None:
    """Commit a completed swap using custody's post-transfer vault balances."""
    apply_observed(
        pool,
        {"reserve_a": observed_reserve_a, "reserve_b": observed_reserve_b},
        label="swap",
        allow_decrease=frozenset({"reserve_a", "reserve_b"}),
    )
