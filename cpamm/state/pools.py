"""
Pool state for two-asset constant-product pools.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from ..errors import AlreadyInitialized, InvalidMint, InvariantViolation
from ..kernels.python.checked_math import U64_MAX, require_uint
from ..kernels.python.cpmm_swap import require_fee_bps
from .canonical import canonical_json_bytes, domain_sep_bytes, encode_str, sha256_hex
from .custody import Amount, AssetId, HolderId, VaultId


logger = logging.getLogger(__name__)


class PoolStatus(Enum):
    """Pool status, derived from the record (never stored)."""
    UNINITIALIZED = "UNINITIALIZED"
    EMPTY = "EMPTY"
    ACTIVE = "ACTIVE"


def compute_pool_key(asset_a_id: AssetId, asset_b_id: AssetId) -> str:
    """
    Order-independent pool key for an asset pair.

        key = H(domain("pool") || len||min(ids) || len||max(ids))
    """
    if asset_a_id == asset_b_id:
        raise InvalidMint("asset identifiers must be distinct")
    lo, hi = sorted((asset_a_id, asset_b_id))
    return sha256_hex(domain_sep_bytes("pool") + encode_str(lo) + encode_str(hi))


@dataclass
class PoolState:
    """
    State of one trading pair.

    Attributes:
        asset_a_id: Identity of reserve asset A
        asset_b_id: Identity of reserve asset B (distinct from A)
        share_token_id: Identity of the liquidity-share token
        reserve_a: Custodied balance of asset A (u64)
        reserve_b: Custodied balance of asset B (u64)
        share_supply: Outstanding liquidity shares (u64)
        fee_bps: Trading fee in basis points (0-10000), fixed at initialization
        initialized: Guards against double initialization
        vault_a_id: Custody account holding reserve A
        vault_b_id: Custody account holding reserve B
        authority_id: Capability holder allowed to move vault funds and mint shares
    """
    asset_a_id: AssetId = ""
    asset_b_id: AssetId = ""
    share_token_id: AssetId = ""
    reserve_a: Amount = 0
    reserve_b: Amount = 0
    share_supply: Amount = 0
    fee_bps: int = 0
    initialized: bool = False
    vault_a_id: Optional[VaultId] = None
    vault_b_id: Optional[VaultId] = None
    authority_id: Optional[HolderId] = None

    def __post_init__(self) -> None:
        require_uint("reserve_a", self.reserve_a)
        require_uint("reserve_b", self.reserve_b)
        require_uint("share_supply", self.share_supply)
        require_fee_bps(self.fee_bps)
        if not isinstance(self.initialized, bool):
            raise TypeError("initialized must be a bool")

    @classmethod
    def blank(cls) -> "PoolState":
        """An uninitialized record, as handed out by the persistence layer."""
        return cls()

    @property
    def status(self) -> PoolStatus:
        if not self.initialized:
            return PoolStatus.UNINITIALIZED
        if self.share_supply == 0:
            return PoolStatus.EMPTY
        return PoolStatus.ACTIVE

    def is_empty(self) -> bool:
        return self.initialized and self.share_supply == 0 and self.reserve_a == 0 and self.reserve_b == 0

    def is_active(self) -> bool:
        return self.initialized and self.share_supply > 0 and self.reserve_a > 0 and self.reserve_b > 0

    def invariant_violations(self) -> list[str]:
        out: list[str] = []
        if not self.initialized:
            out.append("pool is not initialized")
            return out
        if self.asset_a_id == self.asset_b_id:
            out.append("asset_a_id must differ from asset_b_id")
        if self.share_token_id in (self.asset_a_id, self.asset_b_id):
            out.append("share_token_id must differ from the reserve assets")
        for name in ("reserve_a", "reserve_b", "share_supply"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or not (0 <= v <= U64_MAX):
                out.append(f"{name} out of u64 range: {v!r}")
        if not isinstance(self.fee_bps, int) or not (0 <= self.fee_bps <= 10_000):
            out.append(f"fee_bps out of range: {self.fee_bps!r}")
        if not out and not (self.is_empty() or self.is_active()):
            out.append(
                "pool must be empty or active: "
                f"reserves=({self.reserve_a}, {self.reserve_b}) share_supply={self.share_supply}"
            )
        return out

    def validate(self) -> None:
        """Raise InvariantViolation if the record is not a valid initialized pool."""
        violations = self.invariant_violations()
        if violations:
            raise InvariantViolation(violations)

    def resolve_direction(
        self,
        from_asset_id: AssetId,
        to_asset_id: Optional[AssetId] = None,
    ) -> Tuple[Amount, Amount, bool]:
        """
        Resolve a swap direction.

        Returns:
            (reserve_in, reserve_out, a_to_b)

        Raises:
            InvalidMint: If `from_asset_id` is not a pool asset, or `to_asset_id`
                is given and is not its counterpart
        """
        if from_asset_id == self.asset_a_id:
            if to_asset_id is not None and to_asset_id != self.asset_b_id:
                raise InvalidMint(f"destination {to_asset_id!r} is not the counterpart of {from_asset_id!r}")
            return self.reserve_a, self.reserve_b, True
        if from_asset_id == self.asset_b_id:
            if to_asset_id is not None and to_asset_id != self.asset_a_id:
                raise InvalidMint(f"destination {to_asset_id!r} is not the counterpart of {from_asset_id!r}")
            return self.reserve_b, self.reserve_a, False
        raise InvalidMint(f"asset {from_asset_id!r} is not in this pool")

    def get_reserve(self, asset: AssetId) -> Amount:
        if asset == self.asset_a_id:
            return self.reserve_a
        if asset == self.asset_b_id:
            return self.reserve_b
        raise InvalidMint(f"asset {asset!r} is not in this pool")

    def constant_product(self) -> int:
        return self.reserve_a * self.reserve_b

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> "PoolState":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(obj) - known)
        if unknown:
            raise ValueError(f"unknown pool fields: {unknown}")
        return cls(**dict(obj))

    def snapshot_bytes(self) -> bytes:
        return canonical_json_bytes(self.to_dict())

    @classmethod
    def from_snapshot(cls, data: bytes) -> "PoolState":
        obj = json.loads(data.decode("utf-8"))
        if not isinstance(obj, dict):
            raise ValueError("pool snapshot must decode to a JSON object")
        return cls.from_dict(obj)

    def restore(self, snapshot: bytes) -> None:
        """Overwrite every field from a snapshot taken on this record."""
        other = PoolState.from_snapshot(snapshot)
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))

    def __repr__(self) -> str:
        return (
            f"PoolState(assets=({self.asset_a_id!r}, {self.asset_b_id!r}), "
            f"reserves=({self.reserve_a}, {self.reserve_b}), "
            f"share_supply={self.share_supply}, fee_bps={self.fee_bps}, status={self.status.value})"
        )


def initialize(
    pool: PoolState,
    asset_a_id: AssetId,
    asset_b_id: AssetId,
    fee_bps: int,
    *,
    share_token_id: AssetId,
    vault_a_id: Optional[VaultId] = None,
    vault_b_id: Optional[VaultId] = None,
    authority_id: Optional[HolderId] = None,
) -> PoolState:
    """
    Initialize a blank pool record in place.

    Raises:
        AlreadyInitialized: If the record is already initialized
        InvalidMint: If the two asset ids are equal, or the share token reuses one of them
        FeeOutOfRange: If fee_bps is outside [0, 10000]
    """
    if pool.initialized:
        raise AlreadyInitialized()
    if asset_a_id == asset_b_id:
        raise InvalidMint("asset identifiers must be distinct")
    if share_token_id in (asset_a_id, asset_b_id):
        raise InvalidMint("share token must differ from the reserve assets")
    require_fee_bps(fee_bps)

    pool.asset_a_id = asset_a_id
    pool.asset_b_id = asset_b_id
    pool.share_token_id = share_token_id
    pool.fee_bps = fee_bps
    pool.reserve_a = 0
    pool.reserve_b = 0
    pool.share_supply = 0
    pool.vault_a_id = vault_a_id
    pool.vault_b_id = vault_b_id
    pool.authority_id = authority_id
    pool.initialized = True

    logger.info(
        "pool initialized: asset_a=%s asset_b=%s share_token=%s fee_bps=%d authority=%s",
        asset_a_id,
        asset_b_id,
        share_token_id,
        fee_bps,
        authority_id,
    )
    return pool
