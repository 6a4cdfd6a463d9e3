"""
Imperative shell: pool registry, per-pool locking and custody orchestration.
"""

from .pool_service import LiquidityReceipt, PoolService, SwapReceipt
from .registry import PoolAccounts, PoolRecord, PoolRegistry, derive_pool_accounts

__all__ = [
    "LiquidityReceipt",
    "PoolService",
    "SwapReceipt",
    "PoolAccounts",
    "PoolRecord",
    "PoolRegistry",
    "derive_pool_accounts",
]
