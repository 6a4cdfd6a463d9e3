"""
Core pool operations
"""

from ..state.pools import initialize
from .liquidity import add_liquidity, commit_liquidity, quote_add_liquidity
from .swap import SwapPlan, commit_swap, quote_swap, swap

__all__ = [
    "initialize",
    "add_liquidity",
    "quote_add_liquidity",
    "commit_liquidity",
    "swap",
    "quote_swap",
    "commit_swap",
    "SwapPlan",
]
