"""
State records for cpamm pools
"""

from .custody import CustodyLedger, VaultAccount
from .pools import PoolState, PoolStatus, compute_pool_key

__all__ = [
    "CustodyLedger",
    "VaultAccount",
    "PoolState",
    "PoolStatus",
    "compute_pool_key",
]
