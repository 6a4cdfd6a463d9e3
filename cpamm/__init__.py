"""
cpamm: pricing and accounting core for two-asset constant-product pools.
"""

from .config import EngineConfig, configure_logging
from .core import add_liquidity, commit_liquidity, commit_swap, initialize, quote_add_liquidity, quote_swap, swap
from .errors import AmmError
from .state import PoolState, PoolStatus

__version__ = "0.1.0"

__all__ = [
    "EngineConfig",
    "configure_logging",
    "initialize",
    "add_liquidity",
    "quote_add_liquidity",
    "commit_liquidity",
    "swap",
    "quote_swap",
    "commit_swap",
    "AmmError",
    "PoolState",
    "PoolStatus",
]
