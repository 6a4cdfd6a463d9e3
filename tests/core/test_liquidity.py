# [TESTER] v1

from __future__ import annotations

import pytest

from cpamm.core import add_liquidity, commit_liquidity, initialize, quote_add_liquidity
from cpamm.errors import (
    InsufficientInitialLiquidity,
    InsufficientLiquidity,
    InvariantViolation,
    ZeroAmount,
)
from cpamm.state.pools import PoolState, PoolStatus


A = "0x" + "01" * 32
B = "0x" + "02" * 32
LP = "0x" + "aa" * 32


def _pool(reserve_a: int = 0, reserve_b: int = 0, share_supply: int = 0) -> PoolState:
    pool = initialize(PoolState.blank(), A, B, 30, share_token_id=LP)
    pool.reserve_a, pool.reserve_b, pool.share_supply = reserve_a, reserve_b, share_supply
    return pool


def test_first_deposit_quote_leaves_pool_untouched() -> None:
    pool = _pool()
    before = pool.snapshot_bytes()
    assert add_liquidity(pool, 1_000_000, 1_000_000) == (999_000, 1_000_000, 1_000_000)
    assert pool.snapshot_bytes() == before


def test_first_deposit_then_commit_activates_pool() -> None:
    pool = _pool()
    shares, charged_a, charged_b = add_liquidity(pool, 1_000_000, 1_000_000)
    commit_liquidity(
        pool,
        observed_reserve_a=charged_a,
        observed_reserve_b=charged_b,
        observed_share_supply=shares,
    )
    assert pool.status is PoolStatus.ACTIVE
    assert (pool.reserve_a, pool.reserve_b, pool.share_supply) == (1_000_000, 1_000_000, 999_000)


def test_first_deposit_too_small() -> None:
    with pytest.raises(InsufficientInitialLiquidity):
        add_liquidity(_pool(), 1_000, 1_000)


def test_zero_amount_is_checked_first() -> None:
    pool = PoolState.blank()
    before = pool.snapshot_bytes()
    with pytest.raises(ZeroAmount):
        add_liquidity(pool, 0, 10)
    with pytest.raises(ZeroAmount):
        add_liquidity(_pool(1_000_000, 1_000_000, 999_000), 10, 0)
    assert pool.snapshot_bytes() == before


def test_deposit_into_uninitialized_pool_is_rejected() -> None:
    with pytest.raises(InvariantViolation, match="not initialized"):
        add_liquidity(PoolState.blank(), 10_000, 10_000)


def test_subsequent_deposit_surplus_is_donated_on_commit() -> None:
    pool = _pool(1_000_000, 1_000_000, 999_000)
    quote = quote_add_liquidity(pool, 10_000, 100)
    assert quote.as_tuple() == (99, 99, 99)

    # Custody takes the full offer; the vaults report the surplus too.
    commit_liquidity(
        pool,
        observed_reserve_a=1_000_000 + 10_000,
        observed_reserve_b=1_000_000 + 100,
        observed_share_supply=999_000 + quote.shares_minted,
    )
    assert (pool.reserve_a, pool.reserve_b, pool.share_supply) == (1_010_000, 1_000_100, 999_099)


def test_skewed_deposit_rejected() -> None:
    pool = _pool(1_000_000, 1_000_000, 999_000)
    with pytest.raises(InsufficientLiquidity):
        add_liquidity(pool, 100, 1)


def test_quote_is_idempotent() -> None:
    pool = _pool(4_000, 1_000, 1_000)
    first = quote_add_liquidity(pool, 400, 100)
    second = quote_add_liquidity(pool, 400, 100)
    assert first == second
    assert first.as_tuple() == (100, 400, 100)


def test_commit_rejects_shrinking_fields() -> None:
    pool = _pool(1_000_000, 1_000_000, 999_000)
    before = pool.snapshot_bytes()
    with pytest.raises(InvariantViolation, match="decreased"):
        commit_liquidity(
            pool,
            observed_reserve_a=999_999,
            observed_reserve_b=1_000_000,
            observed_share_supply=999_000,
        )
    assert pool.snapshot_bytes() == before


def test_commit_rolls_back_invalid_result() -> None:
    pool = _pool()
    before = pool.snapshot_bytes()
    with pytest.raises(InvariantViolation, match="empty or active"):
        commit_liquidity(pool, observed_reserve_a=5, observed_reserve_b=0, observed_share_supply=0)
    assert pool.snapshot_bytes() == before
