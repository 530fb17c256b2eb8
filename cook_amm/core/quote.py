"""
Swap quoting against a pool.

Composes the pieces a trade goes through before anything is committed:

1. the input asset's transfer fee (quote for buys, base for sells),
2. the chunked simulator when liquidity scaling is in effect, otherwise the
   plain constant-product calculator,
3. the zero-output and dust-floor guards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..config import EngineConfig
from ..state.pools import PoolState
from .checked import SaturationAnomaly, checked_sub
from .cpmm import Side, check_swap_output, parse_side
from .liquidity_scaling import is_scaling, simulate
from .transfer_fee import NoTransferFees, TransferFeeLookup


@dataclass(frozen=True)
class SwapQuote:
    side: Side
    amount_in: int
    transfer_fee: int
    # What the pool actually receives.
    amount_received: int
    # What the curve prices: the received amount in transfer-fee-aware mode.
    amount_priced: int
    amount_out: int
    scaled: bool

    @property
    def base_amount(self) -> int:
        return self.amount_out if self.side is Side.BUY else self.amount_received

    @property
    def quote_amount(self) -> int:
        return self.amount_received if self.side is Side.BUY else self.amount_out


def input_asset(pool: PoolState, side: Side) -> str:
    return pool.quote_asset if side is Side.BUY else pool.base_asset


def output_asset(pool: PoolState, side: Side) -> str:
    return pool.base_asset if side is Side.BUY else pool.quote_asset


def quote_swap(
    pool: PoolState,
    side,
    amount_in: int,
    *,
    config: Optional[EngineConfig] = None,
    transfer_fees: Optional[TransferFeeLookup] = None,
    anomalies: Optional[List[SaturationAnomaly]] = None,
) -> SwapQuote:
    """
    Quote `amount_in` against `pool` without mutating anything.

    Raises:
        ArithmeticRejection: Zero output, dust floor breach, or a failed computation
        ValidationRejection: Bad side or amount
    """
    config = config or EngineConfig()
    transfer_fees = transfer_fees or NoTransferFees()
    side = parse_side(side)

    fee = transfer_fees.fee_for(amount_in, input_asset(pool, side))
    received = checked_sub(amount_in, fee, what="transfer_fee")
    priced = received if config.transfer_fee_aware else amount_in

    plugin = pool.liquidity_scaling
    amount_out = simulate(
        priced,
        side,
        pool.base_reserve,
        pool.quote_reserve,
        pool.fee_bps,
        plugin,
        config=config,
        anomalies=anomalies,
    )
    check_swap_output(amount_out, side, pool.base_reserve, pool.quote_reserve, dust_floor=config.dust_floor)
    return SwapQuote(
        side=side,
        amount_in=amount_in,
        transfer_fee=fee,
        amount_received=received,
        amount_priced=priced,
        amount_out=amount_out,
        scaled=is_scaling(plugin, pool.quote_reserve),
    )
