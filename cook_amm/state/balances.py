"""
Ledger balances keyed by (holder, asset).

Holders are user keys and record identities alike: pool vaults, the reward
vault, the fee collector and every rent-holding record. Lamports are tracked
under `NATIVE_ASSET` in the same table, so one snapshot covers both token and
rent movements.
"""

from typing import Dict, Tuple


Holder = str  # user public key or record identity
AssetId = str  # mint identifier
Amount = int  # u64 at the ledger boundary

NATIVE_ASSET = "native"

_Key = Tuple[Holder, AssetId]


class BalanceTable:
    """Sparse non-negative balances; zero entries are dropped."""

    def __init__(self):
        self._balances: Dict[_Key, Amount] = {}

    def get(self, holder: Holder, asset: AssetId) -> Amount:
        return self._balances.get((holder, asset), 0)

    def set(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"balance cannot be negative: {holder}/{asset} = {amount}")
        if amount:
            self._balances[(holder, asset)] = amount
        else:
            self._balances.pop((holder, asset), None)

    def credit(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"credit must be non-negative: {amount}")
        self.set(holder, asset, self.get(holder, asset) + amount)

    def debit(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        """
        Raises:
            ValueError: If `amount` is negative or exceeds the balance
        """
        if amount < 0:
            raise ValueError(f"debit must be non-negative: {amount}")
        current = self.get(holder, asset)
        if amount > current:
            raise ValueError(f"insufficient {asset} balance for {holder}: has {current}, needs {amount}")
        self.set(holder, asset, current - amount)

    def move(self, asset: AssetId, src: Holder, dst: Holder, amount: Amount) -> None:
        self.debit(src, asset, amount)
        self.credit(dst, asset, amount)

    def snapshot(self) -> Dict[_Key, Amount]:
        return dict(self._balances)

    def restore(self, snapshot: Dict[_Key, Amount]) -> None:
        self._balances = dict(snapshot)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
