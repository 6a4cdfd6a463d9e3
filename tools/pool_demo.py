#!/usr/bin/env python3

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cpamm.config import EngineConfig, configure_logging
from cpamm.errors import AmmError
from cpamm.integration import PoolService
from cpamm.state import CustodyLedger


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Create a pool, seed liquidity and run one exact-in swap (in memory).")
    ap.add_argument("--fee-bps", type=int, default=None, help="trading fee in basis points (default: config)")
    ap.add_argument("--seed-a", type=int, default=1_000_000)
    ap.add_argument("--seed-b", type=int, default=1_000_000)
    ap.add_argument("--amount-in", type=int, default=10_000)
    ap.add_argument("--min-out", type=int, default=0)
    ap.add_argument("--reverse", action="store_true", help="swap asset B for asset A")
    ap.add_argument("--log-level", default=None)
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = EngineConfig.from_env()
    configure_logging(args.log_level or config.log_level)

    asset_a = "0x" + "11" * 32
    asset_b = "0x" + "22" * 32
    provider = "lp-1"
    trader = "trader-1"

    custody = CustodyLedger()
    custody.credit(provider, asset_a, args.seed_a)
    custody.credit(provider, asset_b, args.seed_b)
    from_asset = asset_b if args.reverse else asset_a
    custody.credit(trader, from_asset, args.amount_in)

    service = PoolService(custody, config=config)
    try:
        key = service.create_pool(asset_a, asset_b, fee_bps=args.fee_bps)
        print(f"[pool-demo] pool_key={key}")

        lp = service.add_liquidity(key, provider, args.seed_a, args.seed_b)
        print(f"[pool-demo] seeded: shares={lp.shares_minted} reserves=({lp.reserve_a}, {lp.reserve_b})")

        rcpt = service.swap(key, trader, from_asset, args.amount_in, args.min_out)
    except AmmError as exc:
        print(f"[pool-demo] FAIL: {exc}")
        return 1

    print(f"[pool-demo] swap: in={rcpt.amount_in} fee={rcpt.fee_amount} out={rcpt.amount_out}")
    print(f"[pool-demo] reserves after swap: ({rcpt.reserve_a}, {rcpt.reserve_b})")
    print(f"[pool-demo] trader receives {custody.balance_of(trader, rcpt.asset_out)} of {rcpt.asset_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
