"""
Pool service: the imperative shell around the pricing core.

For every operation, under the pool's lock:
1. Ask the core for a quote (pure; raises on any rejection).
2. Execute the transfers/mint against the custody collaborator.
3. Commit the balances custody now reports into the pool record.

If step 2 or 3 fails, custody is rolled back to its pre-operation snapshot and
the pool record is left byte-for-byte unchanged.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from ..config import EngineConfig
from ..core.liquidity import commit_liquidity, quote_add_liquidity
from ..core.swap import commit_swap, quote_swap
from ..kernels.python.cpmm_swap import require_fee_bps
from ..state.custody import Amount, AssetId, CustodyLedger, HolderId
from ..state.pools import PoolState, initialize
from .registry import PoolRegistry, derive_pool_accounts


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidityReceipt:
    pool_key: str
    shares_minted: Amount
    charged_a: Amount
    charged_b: Amount
    deposited_a: Amount
    deposited_b: Amount
    reserve_a: Amount
    reserve_b: Amount
    share_supply: Amount


@dataclass(frozen=True)
class SwapReceipt:
    pool_key: str
    asset_in: AssetId
    asset_out: AssetId
    amount_in: Amount
    amount_out: Amount
    fee_amount: Amount
    reserve_a: Amount
    reserve_b: Amount


class PoolService:
    def __init__(
        self,
        custody: CustodyLedger,
        registry: Optional[PoolRegistry] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.custody = custody
        self.registry = registry if registry is not None else PoolRegistry()
        self.config = config if config is not None else EngineConfig()

    @contextmanager
    def _custody_txn(self) -> Iterator[None]:
        snap = self.custody.snapshot()
        try:
            yield
        except BaseException:
            self.custody.restore(snap)
            raise

    def create_pool(self, asset_a_id: AssetId, asset_b_id: AssetId, fee_bps: Optional[int] = None) -> str:
        """Register, provision and initialize a pool for the pair. Returns its key."""
        fee = self.config.default_fee_bps if fee_bps is None else fee_bps
        require_fee_bps(fee)

        record = self.registry.create(asset_a_id, asset_b_id)
        accounts = derive_pool_accounts(record.key)
        try:
            with record.lock:
                self.custody.register_mint(accounts.share_token_id, accounts.authority_id)
                self.custody.open_vault(accounts.vault_a_id, asset_a_id, accounts.authority_id)
                self.custody.open_vault(accounts.vault_b_id, asset_b_id, accounts.authority_id)
                initialize(
                    record.pool,
                    asset_a_id,
                    asset_b_id,
                    fee,
                    share_token_id=accounts.share_token_id,
                    vault_a_id=accounts.vault_a_id,
                    vault_b_id=accounts.vault_b_id,
                    authority_id=accounts.authority_id,
                )
        except Exception:
            self.registry.discard(record.key)
            raise
        return record.key

    def pool(self, key: str) -> PoolState:
        """A detached copy of the pool record."""
        record = self.registry.get(key)
        with record.lock:
            return PoolState.from_snapshot(record.pool.snapshot_bytes())

    def add_liquidity(self, key: str, provider: HolderId, amount_a: Amount, amount_b: Amount) -> LiquidityReceipt:
        """
        Deposit into a pool. The full offered amounts are taken into custody;
        anything beyond the ratio-correct charge accrues to the reserves.
        """
        with self.registry.locked(key, self.config.lock_timeout_s) as pool:
            quote = quote_add_liquidity(pool, amount_a, amount_b)
            vault_a = self.custody.require_vault(pool.vault_a_id, asset_id=pool.asset_a_id, authority_id=pool.authority_id)
            vault_b = self.custody.require_vault(pool.vault_b_id, asset_id=pool.asset_b_id, authority_id=pool.authority_id)

            with self._custody_txn():
                self.custody.transfer(pool.asset_a_id, provider, vault_a.vault_id, amount_a)
                self.custody.transfer(pool.asset_b_id, provider, vault_b.vault_id, amount_b)
                self.custody.mint_shares(
                    pool.share_token_id, provider, quote.shares_minted, authority=pool.authority_id
                )
                commit_liquidity(
                    pool,
                    observed_reserve_a=self.custody.vault_balance(vault_a.vault_id),
                    observed_reserve_b=self.custody.vault_balance(vault_b.vault_id),
                    observed_share_supply=self.custody.total_supply(pool.share_token_id),
                )

            receipt = LiquidityReceipt(
                pool_key=key,
                shares_minted=quote.shares_minted,
                charged_a=quote.charged_a,
                charged_b=quote.charged_b,
                deposited_a=amount_a,
                deposited_b=amount_b,
                reserve_a=pool.reserve_a,
                reserve_b=pool.reserve_b,
                share_supply=pool.share_supply,
            )

        logger.info(
            "liquidity added: pool=%s provider=%s shares=%d charged=(%d, %d) deposited=(%d, %d)",
            key,
            provider,
            receipt.shares_minted,
            receipt.charged_a,
            receipt.charged_b,
            amount_a,
            amount_b,
        )
        return receipt

    def swap(
        self,
        key: str,
        trader: HolderId,
        from_asset_id: AssetId,
        amount_in: Amount,
        minimum_amount_out: Amount,
        *,
        to_asset_id: Optional[AssetId] = None,
    ) -> SwapReceipt:
        with self.registry.locked(key, self.config.lock_timeout_s) as pool:
            plan = quote_swap(pool, from_asset_id, amount_in, minimum_amount_out, to_asset_id=to_asset_id)
            if plan.a_to_b:
                vault_in_id, vault_out_id = pool.vault_a_id, pool.vault_b_id
            else:
                vault_in_id, vault_out_id = pool.vault_b_id, pool.vault_a_id
            vault_in = self.custody.require_vault(vault_in_id, asset_id=plan.asset_in, authority_id=pool.authority_id)
            vault_out = self.custody.require_vault(vault_out_id, asset_id=plan.asset_out, authority_id=pool.authority_id)

            with self._custody_txn():
                self.custody.transfer(plan.asset_in, trader, vault_in.vault_id, amount_in)
                self.custody.transfer(
                    plan.asset_out, vault_out.vault_id, trader, plan.amount_out, authority=pool.authority_id
                )
                commit_swap(
                    pool,
                    observed_reserve_a=self.custody.vault_balance(pool.vault_a_id),
                    observed_reserve_b=self.custody.vault_balance(pool.vault_b_id),
                )

            receipt = SwapReceipt(
                pool_key=key,
                asset_in=plan.asset_in,
                asset_out=plan.asset_out,
                amount_in=amount_in,
                amount_out=plan.amount_out,
                fee_amount=plan.quote.fee_amount,
                reserve_a=pool.reserve_a,
                reserve_b=pool.reserve_b,
            )

        logger.info(
            "swap executed: pool=%s trader=%s %d %s -> %d %s",
            key,
            trader,
            amount_in,
            plan.asset_in,
            plan.amount_out,
            plan.asset_out,
        )
        return receipt
