"""
Constant-product swap calculator.

Wraps the integer quote kernel with the launchpad's pool orientation and the
swap guards.

Orientation:
- Side 0 (BUY) spends quote for base: reserve_in = quote, reserve_out = base.
- Side 1 (SELL) spends base for quote: reserve_in = base, reserve_out = quote.

Guards:
- An output that rounds down to zero is rejected.
- A trade that would leave the paid-out reserve below the dust floor is rejected.
"""

from __future__ import annotations

from enum import IntEnum, unique
from typing import Tuple, Union

from ..kernels.python.cpmm_quote_v1 import quote_exact_in as _kernel_quote_exact_in
from ..state.balances import Amount
from .errors import ArithmeticRejection, ValidationRejection

MIN_RESERVE_DUST = 100


@unique
class Side(IntEnum):
    BUY = 0
    SELL = 1


def parse_side(value: Union[Side, int, str]) -> Side:
    if isinstance(value, Side):
        return value
    if isinstance(value, str):
        name = value.strip().upper()
        if name in Side.__members__:
            return Side[name]
        raise ValidationRejection(f"bad_side:{value}")
    if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
        return Side(value)
    raise ValidationRejection(f"bad_side:{value!r}")


def orient(side: Side, base_reserve: Amount, quote_reserve: Amount) -> Tuple[Amount, Amount]:
    """Return `(reserve_in, reserve_out)` for `side`."""
    if side is Side.BUY:
        return quote_reserve, base_reserve
    return base_reserve, quote_reserve


def get_swap_amount(
    input_amount: Amount,
    side: Union[Side, int],
    base_reserve: Amount,
    quote_reserve: Amount,
    fee_bps: int,
) -> Amount:
    """
    Curve output for `input_amount` after the pool fee, without guards.

        out = floor(input * (10_000 - fee_bps) * R_out / (R_in * 10_000 + input * (10_000 - fee_bps)))

    Raises:
        ArithmeticRejection: If the curve is undefined for these reserves
        ValidationRejection: If an argument is outside its domain
    """
    side = parse_side(side)
    reserve_in, reserve_out = orient(side, base_reserve, quote_reserve)
    try:
        res = _kernel_quote_exact_in(
            reserve_in=reserve_in,
            reserve_out=reserve_out,
            amount_in=input_amount,
            fee_bps=fee_bps,
        )
    except TypeError as exc:
        raise ValidationRejection(f"bad_argument:{exc}") from exc
    except ValueError as exc:
        if "curve undefined" in str(exc):
            raise ArithmeticRejection("divide_by_zero_curve") from exc
        raise ValidationRejection(f"bad_argument:{exc}") from exc
    return res.amount_out


def check_swap_output(
    output: Amount,
    side: Side,
    base_reserve: Amount,
    quote_reserve: Amount,
    *,
    dust_floor: int = MIN_RESERVE_DUST,
) -> None:
    """
    Reject zero outputs and trades that would drain the paid-out reserve.

    Raises:
        ArithmeticRejection: `zero_output` or `dust_floor`
    """
    if output == 0:
        raise ArithmeticRejection("zero_output")
    _, reserve_out = orient(side, base_reserve, quote_reserve)
    if reserve_out - output < dust_floor:
        raise ArithmeticRejection("dust_floor")


def swap(
    input_amount: Amount,
    side: Union[Side, int],
    base_reserve: Amount,
    quote_reserve: Amount,
    fee_bps: int,
    *,
    dust_floor: int = MIN_RESERVE_DUST,
) -> Amount:
    """Guarded swap output. Performs no mutation."""
    side = parse_side(side)
    output = get_swap_amount(input_amount, side, base_reserve, quote_reserve, fee_bps)
    check_swap_output(output, side, base_reserve, quote_reserve, dust_floor=dust_floor)
    return output
