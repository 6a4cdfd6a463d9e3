"""
Pool registry: one independently lockable record per asset pair.

Keys are order-independent, so (A, B) and (B, A) resolve to the same pool. The
registry-wide guard is held only while the mapping itself changes; operations
on a pool take that pool's lock and never block unrelated pairs.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from ..errors import PoolBusy, PoolExists, PoolNotFound
from ..state.canonical import domain_sep_bytes, encode_str, sha256_hex
from ..state.custody import AssetId, HolderId, VaultId
from ..state.pools import PoolState, compute_pool_key


@dataclass
class PoolRecord:
    key: str
    pool: PoolState
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass(frozen=True)
class PoolAccounts:
    """Collaborator identifiers owned by one pool."""

    share_token_id: AssetId
    vault_a_id: VaultId
    vault_b_id: VaultId
    authority_id: HolderId


def _derive(label: str, key: str) -> str:
    return sha256_hex(domain_sep_bytes(label) + encode_str(key))


def derive_pool_accounts(key: str) -> PoolAccounts:
    """Deterministically derive the share token, vault and authority ids for a pool key."""
    return PoolAccounts(
        share_token_id=_derive("share_token", key),
        vault_a_id=_derive("vault_a", key),
        vault_b_id=_derive("vault_b", key),
        authority_id=_derive("pool_authority", key),
    )


class PoolRegistry:
    def __init__(self) -> None:
        self._records: Dict[str, PoolRecord] = {}
        self._guard = threading.Lock()

    def create(self, asset_a_id: AssetId, asset_b_id: AssetId) -> PoolRecord:
        """Register a blank record for the pair. Fails if the pair already has one."""
        key = compute_pool_key(asset_a_id, asset_b_id)
        with self._guard:
            if key in self._records:
                raise PoolExists(f"pool already exists for ({asset_a_id}, {asset_b_id}): {key}")
            record = PoolRecord(key=key, pool=PoolState.blank())
            self._records[key] = record
        return record

    def discard(self, key: str) -> None:
        with self._guard:
            self._records.pop(key, None)

    def get(self, key: str) -> PoolRecord:
        with self._guard:
            record = self._records.get(key)
        if record is None:
            raise PoolNotFound(f"no pool registered under {key}")
        return record

    def find(self, asset_a_id: AssetId, asset_b_id: AssetId) -> Optional[PoolRecord]:
        if asset_a_id == asset_b_id:
            return None
        with self._guard:
            return self._records.get(compute_pool_key(asset_a_id, asset_b_id))

    @contextmanager
    def locked(self, key: str, timeout: float) -> Iterator[PoolState]:
        """
        Hold `key`'s lock for the whole compute -> transfer -> commit sequence.

        Raises:
            PoolNotFound: If the key is not registered
            PoolBusy: If the lock is not acquired within `timeout` seconds
        """
        record = self.get(key)
        if not record.lock.acquire(timeout=timeout):
            raise PoolBusy(f"pool {key} is locked by another operation")
        try:
            yield record.pool
        finally:
            record.lock.release()

    def keys(self) -> List[str]:
        with self._guard:
            return sorted(self._records)

    def export_snapshots(self) -> Dict[str, bytes]:
        """Canonical bytes for every pool, for the persistence collaborator."""
        out: Dict[str, bytes] = {}
        for key in self.keys():
            record = self.get(key)
            with record.lock:
                out[key] = record.pool.snapshot_bytes()
        return out

    @classmethod
    def from_snapshots(cls, snapshots: Dict[str, bytes]) -> "PoolRegistry":
        registry = cls()
        for key, data in snapshots.items():
            pool = PoolState.from_snapshot(data)
            pool.validate()
            expected = compute_pool_key(pool.asset_a_id, pool.asset_b_id)
            if expected != key:
                raise ValueError(f"snapshot key mismatch: {key} != {expected}")
            registry._records[key] = PoolRecord(key=key, pool=pool)
        return registry

    def __contains__(self, key: object) -> bool:
        with self._guard:
            return key in self._records

    def __len__(self) -> int:
        with self._guard:
            return len(self._records)
