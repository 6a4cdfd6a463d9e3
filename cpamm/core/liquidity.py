"""
Liquidity provision: share minting for the first and subsequent deposits.
"""

from __future__ import annotations

import logging
from typing import Tuple

from ..errors import AmmError, ZeroAmount
from ..kernels.python.lp_math import LiquidityQuote, mint_initial, mint_proportional
from ..state.custody import Amount
from ..state.pools import PoolState
from .reconcile import apply_observed


logger = logging.getLogger(__name__)


def quote_add_liquidity(pool: PoolState, amount_a: Amount, amount_b: Amount) -> LiquidityQuote:
    """
    Compute the shares to mint and the exact amounts owed for a deposit.

    For an empty pool (share_supply == 0):
        shares = isqrt(amount_a * amount_b) - MINIMUM_LIQUIDITY
        charged = (amount_a, amount_b)

    For an active pool:
        shares = min(floor(amount_a * supply / reserve_a), floor(amount_b * supply / reserve_b))
        charged_x = floor(shares * reserve_x / supply)

    The pool is not modified.

    Raises:
        ZeroAmount: If either amount is zero
        InvariantViolation: If the pool is not a valid initialized record
        MathOverflow / ZeroDivision: On unrepresentable intermediates
        InsufficientInitialLiquidity / InsufficientLiquidity / LiquidityRatioMismatch
    """
    try:
        if amount_a == 0 or amount_b == 0:
            raise ZeroAmount(f"deposit amounts must be positive: ({amount_a}, {amount_b})")
        pool.validate()

        if pool.share_supply == 0:
            quote = mint_initial(amount_a=amount_a, amount_b=amount_b)
            logger.debug("initial liquidity: minting %d shares", quote.shares_minted)
        else:
            quote = mint_proportional(
                reserve_a=pool.reserve_a,
                reserve_b=pool.reserve_b,
                share_supply=pool.share_supply,
                amount_a=amount_a,
                amount_b=amount_b,
            )
            logger.debug(
                "subsequent liquidity: minting %d shares, charged=(%d, %d) surplus=(%d, %d)",
                quote.shares_minted,
                quote.charged_a,
                quote.charged_b,
                quote.surplus_a,
                quote.surplus_b,
            )
    except AmmError as exc:
        logger.debug("add_liquidity rejected: %s", exc.code)
        raise
    return quote


def add_liquidity(pool: PoolState, amount_a: Amount, amount_b: Amount) -> Tuple[Amount, Amount, Amount]:
    """Return (shares_minted, charged_a, charged_b) for a deposit. See `quote_add_liquidity`."""
    return quote_add_liquidity(pool, amount_a, amount_b).as_tuple()


def commit_liquidity(
    pool: PoolState,
    *,
    observed_reserve_a: Amount,
    observed_reserve_b: Amount,
    observed_share_supply: Amount,
) -> None:
    """
    Commit a completed deposit using custody's post-transfer vault balances and
    the share token's post-mint supply.

    Surplus offered beyond the charge is already in the vaults, so it lands in
    the reserves here.
    """
    apply_observed(
        pool,
        {
            "reserve_a": observed_reserve_a,
            "reserve_b": observed_reserve_b,
            "share_supply": observed_share_supply,
        },
        label="add_liquidity",
    )
