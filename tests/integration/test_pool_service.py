# [TESTER] v1

from __future__ import annotations

import threading

import pytest

from cpamm.config import EngineConfig
from cpamm.errors import (
    CustodyError,
    FeeOutOfRange,
    InvalidMint,
    MinimumOutputBalanceExceed,
    PoolBusy,
    PoolExists,
    SameTokenSwap,
)
from cpamm.integration import PoolService
from cpamm.state import CustodyLedger, PoolStatus


A = "0x" + "11" * 32
B = "0x" + "22" * 32


def _service(config: EngineConfig | None = None) -> tuple[PoolService, CustodyLedger, str]:
    custody = CustodyLedger()
    service = PoolService(custody, config=config)
    key = service.create_pool(A, B)
    return service, custody, key


def _seeded(config: EngineConfig | None = None) -> tuple[PoolService, CustodyLedger, str]:
    service, custody, key = _service(config)
    custody.credit("lp", A, 1_000_000)
    custody.credit("lp", B, 1_000_000)
    service.add_liquidity(key, "lp", 1_000_000, 1_000_000)
    return service, custody, key


def test_create_pool_provisions_custody_accounts() -> None:
    service, custody, key = _service()
    pool = service.pool(key)
    assert pool.status is PoolStatus.EMPTY
    assert pool.fee_bps == 30
    assert custody.require_vault(pool.vault_a_id, asset_id=A, authority_id=pool.authority_id)
    assert custody.require_vault(pool.vault_b_id, asset_id=B, authority_id=pool.authority_id)
    assert custody.total_supply(pool.share_token_id) == 0


def test_create_pool_uses_configured_default_fee() -> None:
    service, _, key = _service(EngineConfig(default_fee_bps=5))
    assert service.pool(key).fee_bps == 5


def test_create_pool_rejections_leave_registry_clean() -> None:
    custody = CustodyLedger()
    service = PoolService(custody)
    with pytest.raises(FeeOutOfRange):
        service.create_pool(A, B, fee_bps=10_001)
    with pytest.raises(InvalidMint):
        service.create_pool(A, A)
    assert len(service.registry) == 0

    service.create_pool(A, B)
    with pytest.raises(PoolExists):
        service.create_pool(B, A)
    assert len(service.registry) == 1


def test_first_deposit_mints_shares_to_provider() -> None:
    service, custody, key = _seeded()
    pool = service.pool(key)
    assert (pool.reserve_a, pool.reserve_b, pool.share_supply) == (1_000_000, 1_000_000, 999_000)
    assert custody.balance_of("lp", pool.share_token_id) == 999_000
    assert custody.vault_balance(pool.vault_a_id) == 1_000_000
    assert custody.balance_of("lp", A) == 0


def test_surplus_deposit_is_donated_to_reserves() -> None:
    service, custody, key = _seeded()
    custody.credit("bob", A, 10_000)
    custody.credit("bob", B, 100)
    receipt = service.add_liquidity(key, "bob", 10_000, 100)
    assert (receipt.shares_minted, receipt.charged_a, receipt.charged_b) == (99, 99, 99)
    assert (receipt.reserve_a, receipt.reserve_b, receipt.share_supply) == (1_010_000, 1_000_100, 999_099)
    assert custody.balance_of("bob", A) == 0
    assert custody.balance_of("bob", service.pool(key).share_token_id) == 99


def test_swap_moves_funds_and_commits_vault_balances() -> None:
    service, custody, key = _seeded()
    custody.credit("trader", A, 10_000)
    receipt = service.swap(key, "trader", A, 10_000, 9_871, to_asset_id=B)
    assert (receipt.amount_out, receipt.fee_amount) == (9_871, 30)
    assert (receipt.reserve_a, receipt.reserve_b) == (1_010_000, 990_129)
    assert custody.balance_of("trader", A) == 0
    assert custody.balance_of("trader", B) == 9_871

    pool = service.pool(key)
    assert custody.vault_balance(pool.vault_a_id) == pool.reserve_a
    assert custody.vault_balance(pool.vault_b_id) == pool.reserve_b


def test_reverse_swap() -> None:
    service, custody, key = _seeded()
    custody.credit("trader", B, 10_000)
    receipt = service.swap(key, "trader", B, 10_000, 0)
    assert (receipt.asset_in, receipt.asset_out) == (B, A)
    assert receipt.amount_out == 9_871
    assert (receipt.reserve_a, receipt.reserve_b) == (990_129, 1_010_000)


def test_rejected_swaps_change_nothing() -> None:
    service, custody, key = _seeded()
    custody.credit("trader", A, 10_000)
    pool_before = service.pool(key).snapshot_bytes()
    balances_before = custody.get_all_balances()

    with pytest.raises(MinimumOutputBalanceExceed):
        service.swap(key, "trader", A, 10_000, 9_872)
    with pytest.raises(SameTokenSwap):
        service.swap(key, "trader", A, 10_000, 0, to_asset_id=A)

    assert service.pool(key).snapshot_bytes() == pool_before
    assert custody.get_all_balances() == balances_before


def test_failed_transfer_rolls_back_swap() -> None:
    service, custody, key = _seeded()
    custody.credit("trader", A, 5_000)
    pool_before = service.pool(key).snapshot_bytes()
    balances_before = custody.get_all_balances()

    with pytest.raises(CustodyError):
        service.swap(key, "trader", A, 10_000, 0)

    assert service.pool(key).snapshot_bytes() == pool_before
    assert custody.get_all_balances() == balances_before


def test_failed_transfer_rolls_back_deposit() -> None:
    service, custody, key = _service()
    custody.credit("lp", A, 1_000_000)
    custody.credit("lp", B, 10)
    pool_before = service.pool(key).snapshot_bytes()

    with pytest.raises(CustodyError):
        service.add_liquidity(key, "lp", 1_000_000, 1_000_000)

    pool = service.pool(key)
    assert pool.snapshot_bytes() == pool_before
    assert custody.balance_of("lp", A) == 1_000_000
    assert custody.vault_balance(pool.vault_a_id) == 0
    assert custody.total_supply(pool.share_token_id) == 0


def test_direct_vault_donation_is_picked_up_on_next_commit() -> None:
    service, custody, key = _seeded()
    custody.credit(service.pool(key).vault_a_id, A, 500)
    custody.credit("trader", A, 10_000)
    receipt = service.swap(key, "trader", A, 10_000, 0)
    # Priced on the committed reserves, committed from the vaults.
    assert receipt.amount_out == 9_871
    assert (receipt.reserve_a, receipt.reserve_b) == (1_010_500, 990_129)


def test_pool_copy_is_detached() -> None:
    service, _, key = _seeded()
    copy = service.pool(key)
    copy.reserve_a = 1
    assert service.pool(key).reserve_a == 1_000_000


def test_concurrent_swaps_serialize_per_pool() -> None:
    service, custody, key = _seeded()
    traders = [f"trader-{i}" for i in range(8)]
    for t in traders:
        custody.credit(t, A, 1_000)

    errors: list[Exception] = []

    def run(trader: str) -> None:
        try:
            service.swap(key, trader, A, 1_000, 0)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=run, args=(t,)) for t in traders]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert errors == []
    pool = service.pool(key)
    paid_out = sum(custody.balance_of(t, B) for t in traders)
    assert pool.reserve_a == 1_008_000
    assert pool.reserve_b == 1_000_000 - paid_out
    assert custody.vault_balance(pool.vault_b_id) == pool.reserve_b
    assert pool.constant_product() >= 1_000_000 * 1_000_000


def test_busy_pool_times_out() -> None:
    service, custody, key = _seeded(EngineConfig(lock_timeout_s=0.01))
    custody.credit("trader", A, 10_000)
    record = service.registry.get(key)
    assert record.lock.acquire()
    try:
        with pytest.raises(PoolBusy):
            service.swap(key, "trader", A, 10_000, 0)
    finally:
        record.lock.release()
    assert custody.balance_of("trader", A) == 10_000
