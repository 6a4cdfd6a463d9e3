"""
Observed-balance reconciliation.

After the custody collaborator has executed the transfers for an operation,
the pool record is overwritten with the balances custody *reports*, not with
arithmetic deltas. A commit that would leave the record invalid is rolled back.
"""

from __future__ import annotations

import logging
from typing import Mapping

from ..errors import InvariantViolation
from ..kernels.python.checked_math import require_uint
from ..state.pools import PoolState


logger = logging.getLogger(__name__)

_COMMITTABLE = ("reserve_a", "reserve_b", "share_supply")


def apply_observed(
    pool: PoolState,
    observed: Mapping[str, int],
    *,
    label: str,
    allow_decrease: frozenset[str] = frozenset(),
) -> None:
    """
    Commit observed balances into `pool`, all-or-nothing.

    Fields not listed in `allow_decrease` must not shrink.
    """
    unknown = sorted(set(observed) - set(_COMMITTABLE))
    if unknown:
        raise ValueError(f"cannot commit fields: {unknown}")
    for name, value in observed.items():
        require_uint(f"observed {name}", value)

    violations = [
        f"{name} decreased on {label}: {getattr(pool, name)} -> {value}"
        for name, value in observed.items()
        if name not in allow_decrease and value < getattr(pool, name)
    ]
    if violations:
        raise InvariantViolation(violations)

    snapshot = pool.snapshot_bytes()
    for name, value in observed.items():
        setattr(pool, name, value)

    violations = pool.invariant_violations()
    if violations:
        pool.restore(snapshot)
        raise InvariantViolation(violations)

    logger.info(
        "%s committed: reserves=(%d, %d) share_supply=%d",
        label,
        pool.reserve_a,
        pool.reserve_b,
        pool.share_supply,
    )
