from __future__ import annotations

import pytest

from cpamm.errors import InvariantViolation, PoolBusy, PoolExists, PoolNotFound
from cpamm.integration.registry import PoolRegistry, derive_pool_accounts
from cpamm.state.pools import compute_pool_key, initialize


A = "asset-a"
B = "asset-b"
C = "asset-c"


def _initialized(registry: PoolRegistry, x: str, y: str) -> str:
    record = registry.create(x, y)
    accounts = derive_pool_accounts(record.key)
    initialize(record.pool, x, y, 30, share_token_id=accounts.share_token_id)
    return record.key


def test_pair_is_registered_once_in_either_order() -> None:
    registry = PoolRegistry()
    record = registry.create(A, B)
    assert record.key == compute_pool_key(A, B)
    with pytest.raises(PoolExists):
        registry.create(B, A)
    assert registry.find(B, A) is record
    assert registry.find(A, C) is None
    assert registry.find(A, A) is None
    assert record.key in registry and len(registry) == 1


def test_get_unknown_and_discard() -> None:
    registry = PoolRegistry()
    key = registry.create(A, B).key
    registry.discard(key)
    with pytest.raises(PoolNotFound):
        registry.get(key)
    with pytest.raises(PoolNotFound):
        with registry.locked(key, 0.01):
            pass


def test_locked_times_out_when_pool_is_held() -> None:
    registry = PoolRegistry()
    record = registry.create(A, B)
    assert record.lock.acquire()
    try:
        with pytest.raises(PoolBusy):
            with registry.locked(record.key, 0.01):
                pass
    finally:
        record.lock.release()

    with registry.locked(record.key, 0.01) as pool:
        assert pool is record.pool
        assert record.lock.locked()
    assert not record.lock.locked()


def test_unrelated_pairs_lock_independently() -> None:
    registry = PoolRegistry()
    ab = registry.create(A, B)
    ac = registry.create(A, C)
    with registry.locked(ab.key, 0.01):
        with registry.locked(ac.key, 0.01) as pool:
            assert pool is ac.pool


def test_derived_accounts_are_distinct_and_stable() -> None:
    key = compute_pool_key(A, B)
    accounts = derive_pool_accounts(key)
    ids = {accounts.share_token_id, accounts.vault_a_id, accounts.vault_b_id, accounts.authority_id}
    assert len(ids) == 4
    assert derive_pool_accounts(key) == accounts
    assert derive_pool_accounts(compute_pool_key(A, C)).vault_a_id != accounts.vault_a_id


def test_snapshot_export_and_reload() -> None:
    registry = PoolRegistry()
    k1 = _initialized(registry, A, B)
    k2 = _initialized(registry, C, A)
    assert registry.keys() == sorted([k1, k2])

    snaps = registry.export_snapshots()
    reloaded = PoolRegistry.from_snapshots(snaps)
    assert reloaded.keys() == registry.keys()
    assert reloaded.export_snapshots() == snaps


def test_reload_rejects_bad_snapshots() -> None:
    registry = PoolRegistry()
    key = _initialized(registry, A, B)
    data = registry.export_snapshots()[key]
    with pytest.raises(ValueError, match="key mismatch"):
        PoolRegistry.from_snapshots({compute_pool_key(A, C): data})

    blank = PoolRegistry().create(B, C)
    with pytest.raises(InvariantViolation):
        PoolRegistry.from_snapshots({blank.key: blank.pool.snapshot_bytes()})
