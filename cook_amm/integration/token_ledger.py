"""
Token movements with transfer-fee withholding.

Assets with a transfer fee withhold part of every transfer; the withheld amount
is parked under `WITHHELD_HOLDER` for that asset, so the sender is debited the
full amount and the recipient credited the rest.
"""

from __future__ import annotations

from typing import Optional

from ..core.transfer_fee import NoTransferFees, TransferFeeLookup
from ..state.balances import Amount, AssetId, BalanceTable, Holder

WITHHELD_HOLDER = "transfer_fee_withheld"


class TokenLedger:
    def __init__(self, balances: Optional[BalanceTable] = None, transfer_fees: Optional[TransferFeeLookup] = None):
        self.balances = balances if balances is not None else BalanceTable()
        self.transfer_fees: TransferFeeLookup = transfer_fees if transfer_fees is not None else NoTransferFees()

    def balance(self, holder: Holder, asset: AssetId) -> Amount:
        return self.balances.get(holder, asset)

    def mint(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        self.balances.credit(holder, asset, amount)

    def burn(self, holder: Holder, asset: AssetId, amount: Amount) -> None:
        self.balances.debit(holder, asset, amount)

    def transfer(self, asset: AssetId, src: Holder, dst: Holder, amount: Amount) -> Amount:
        """
        Move `amount` of `asset` from `src`; return what `dst` received.

        Raises:
            ValueError: If `src` holds less than `amount`
        """
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        fee = self.transfer_fees.fee_for(amount, asset)
        self.balances.debit(src, asset, amount)
        self.balances.credit(dst, asset, amount - fee)
        if fee:
            self.balances.credit(WITHHELD_HOLDER, asset, fee)
        return amount - fee
