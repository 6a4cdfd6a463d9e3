"""
Runtime configuration.

Protocol constants (MINIMUM_LIQUIDITY, the fee denominator) are not
configurable; only service-level knobs live here.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .kernels.python.checked_math import BPS_DENOM


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


@dataclass(frozen=True)
class EngineConfig:
    """Service-level config for `PoolService`."""

    # Fee used by `create_pool` when the caller does not pass one.
    default_fee_bps: int = 30
    # How long an operation waits for a pool's lock before failing with PoolBusy.
    lock_timeout_s: float = 5.0
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if not isinstance(self.default_fee_bps, int) or isinstance(self.default_fee_bps, bool):
            raise TypeError("default_fee_bps must be an int")
        if not (0 <= self.default_fee_bps <= BPS_DENOM):
            raise ValueError(f"default_fee_bps must be in [0, {BPS_DENOM}]: {self.default_fee_bps}")
        if self.lock_timeout_s <= 0:
            raise ValueError(f"lock_timeout_s must be positive: {self.lock_timeout_s}")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}: {self.log_level!r}")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        level = _env_str("CPAMM_LOG_LEVEL", "WARNING").upper()
        if level not in _LOG_LEVELS:
            level = "WARNING"
        return cls(
            default_fee_bps=_env_int("CPAMM_DEFAULT_FEE_BPS", 30, lo=0, hi=BPS_DENOM),
            lock_timeout_s=_env_int("CPAMM_LOCK_TIMEOUT_MS", 5_000, lo=1, hi=600_000) / 1000.0,
            log_level=level,
        )


def configure_logging(level: str = "WARNING") -> None:
    """Console logging for tools and scripts; library code never calls this."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
