"""
In-memory custody ledger.

This is the reference implementation of the custody/transfer and share-mint
collaborators the pricing core commits against:
- Balances are tracked per (holder, asset); pool vaults are holders too.
- A vault is bound to exactly one asset and one authority. Moving funds out of
  a vault requires presenting that authority (a scoped capability).
- Share tokens are registered mints whose supply only grows via `mint_shares`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..errors import CustodyError, InvalidVault
from ..kernels.python.checked_math import checked_add, require_uint


# Type aliases
AssetId = str  # opaque, compared for equality only
HolderId = str  # account or authority identifier
VaultId = str  # custody account owned by a pool authority
Amount = int  # u64


@dataclass(frozen=True)
class VaultAccount:
    vault_id: VaultId
    asset_id: AssetId
    authority_id: HolderId


@dataclass(frozen=True)
class CustodySnapshot:
    balances: Tuple[Tuple[Tuple[HolderId, AssetId], Amount], ...]
    supplies: Tuple[Tuple[AssetId, Amount], ...]


class CustodyLedger:
    """
    Balance table mapping (holder, asset) -> amount, plus vault and mint registries.

    Note: balances live in a plain dict. Callers that need a deterministic view
    should sort keys explicitly.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[HolderId, AssetId], Amount] = {}
        self._vaults: Dict[VaultId, VaultAccount] = {}
        self._mint_authority: Dict[AssetId, HolderId] = {}
        self._supply: Dict[AssetId, Amount] = {}

    # -- registries -------------------------------------------------------

    def open_vault(self, vault_id: VaultId, asset_id: AssetId, authority_id: HolderId) -> VaultAccount:
        if vault_id in self._vaults:
            raise CustodyError(f"vault already exists: {vault_id}")
        account = VaultAccount(vault_id=vault_id, asset_id=asset_id, authority_id=authority_id)
        self._vaults[vault_id] = account
        return account

    def register_mint(self, token_id: AssetId, authority_id: HolderId) -> None:
        if token_id in self._mint_authority:
            raise CustodyError(f"mint already registered: {token_id}")
        self._mint_authority[token_id] = authority_id
        self._supply[token_id] = 0

    def vault(self, vault_id: VaultId) -> VaultAccount:
        try:
            return self._vaults[vault_id]
        except KeyError:
            raise InvalidVault(f"unknown vault: {vault_id}") from None

    def require_vault(self, vault_id: Optional[VaultId], *, asset_id: AssetId, authority_id: Optional[HolderId]) -> VaultAccount:
        """Check that `vault_id` is a vault for `asset_id` controlled by `authority_id`."""
        if vault_id is None:
            raise InvalidVault("pool has no vault bound for this asset")
        account = self.vault(vault_id)
        if account.asset_id != asset_id:
            raise InvalidVault(f"vault {vault_id} holds {account.asset_id}, not {asset_id}")
        if account.authority_id != authority_id:
            raise InvalidVault(f"vault {vault_id} is not controlled by {authority_id}")
        return account

    # -- balances ---------------------------------------------------------

    def balance_of(self, holder: HolderId, asset: AssetId) -> Amount:
        """Get balance for (holder, asset). Returns 0 if not found."""
        return self._balances.get((holder, asset), 0)

    def vault_balance(self, vault_id: VaultId) -> Amount:
        account = self.vault(vault_id)
        return self.balance_of(vault_id, account.asset_id)

    def total_supply(self, token_id: AssetId) -> Amount:
        if token_id not in self._supply:
            raise CustodyError(f"unknown mint: {token_id}")
        return self._supply[token_id]

    def _set(self, holder: HolderId, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise CustodyError(f"balance cannot be negative: {amount}")
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop((holder, asset), None)
        else:
            self._balances[(holder, asset)] = amount

    def credit(self, holder: HolderId, asset: AssetId, amount: Amount) -> None:
        """Faucet: create `amount` of an external asset in `holder`'s account."""
        require_uint("amount", amount)
        if asset in self._mint_authority:
            raise CustodyError(f"{asset} is a share token; use mint_shares")
        account = self._vaults.get(holder)
        if account is not None and account.asset_id != asset:
            raise InvalidVault(f"vault {holder} holds {account.asset_id}, not {asset}")
        self._set(holder, asset, checked_add(self.balance_of(holder, asset), amount))

    def transfer(
        self,
        asset: AssetId,
        source: HolderId,
        destination: HolderId,
        amount: Amount,
        *,
        authority: Optional[HolderId] = None,
    ) -> None:
        """
        Move `amount` of `asset` from `source` to `destination`.

        Raises:
            InvalidVault: If either side is a vault for a different asset
            CustodyError: If a vault is debited without its authority, or funds are insufficient
            MathOverflow: If the destination balance would leave u64
        """
        require_uint("amount", amount)
        src_vault = self._vaults.get(source)
        if src_vault is not None:
            if src_vault.asset_id != asset:
                raise InvalidVault(f"vault {source} holds {src_vault.asset_id}, not {asset}")
            if authority != src_vault.authority_id:
                raise CustodyError(f"transfer out of vault {source} requires its authority")
        dst_vault = self._vaults.get(destination)
        if dst_vault is not None and dst_vault.asset_id != asset:
            raise InvalidVault(f"vault {destination} holds {dst_vault.asset_id}, not {asset}")

        current = self.balance_of(source, asset)
        if current < amount:
            raise CustodyError(f"insufficient balance: {source} has {current} {asset}, needs {amount}")
        credited = checked_add(self.balance_of(destination, asset), amount)
        if source == destination:
            return
        self._set(source, asset, current - amount)
        self._set(destination, asset, credited)

    def mint_shares(self, token_id: AssetId, holder: HolderId, amount: Amount, *, authority: HolderId) -> None:
        require_uint("amount", amount)
        expected = self._mint_authority.get(token_id)
        if expected is None:
            raise CustodyError(f"unknown mint: {token_id}")
        if authority != expected:
            raise CustodyError(f"minting {token_id} requires its authority")
        new_supply = checked_add(self._supply[token_id], amount)
        new_balance = checked_add(self.balance_of(holder, token_id), amount)
        self._supply[token_id] = new_supply
        self._set(holder, token_id, new_balance)

    # -- atomicity support --------------------------------------------------

    def snapshot(self) -> CustodySnapshot:
        return CustodySnapshot(
            balances=tuple(sorted(self._balances.items())),
            supplies=tuple(sorted(self._supply.items())),
        )

    def restore(self, snap: CustodySnapshot) -> None:
        """Roll balances and supplies back to `snap`. Vault and mint registries are kept."""
        self._balances = dict(snap.balances)
        supplies = dict(snap.supplies)
        self._supply = {token_id: supplies.get(token_id, 0) for token_id in self._mint_authority}

    def get_all_balances(self) -> Dict[Tuple[HolderId, AssetId], Amount]:
        return dict(self._balances)

    def __repr__(self) -> str:
        return f"CustodyLedger({len(self._balances)} balances, {len(self._vaults)} vaults)"
