"""
Constant-product quote kernel (v1 semantics).

- The pool fee is taken from the input *before* the curve is applied.
- The fee is fractional: the curve prices `amount_in * (10_000 - fee_bps) / 10_000`
  exactly, with no intermediate rounding.
- The output is the floor of the real-valued constant-product output:

      out = floor(amount_in * (10_000 - fee_bps) * reserve_out
                  / (reserve_in * 10_000 + amount_in * (10_000 - fee_bps)))

Working in units scaled by `BPS_DENOM` keeps the whole computation in integers,
so results are identical on every platform.
"""

from __future__ import annotations

from dataclasses import dataclass


BPS_DENOM = 10_000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class QuoteExactInResult:
    amount_out: int
    amount_in: int
    # floor(amount_in * fee_bps / 10_000); informational, the curve uses the exact fraction.
    fee_amount: int
    reserve_in: int
    reserve_out: int


def compute_fee_amount(*, amount_in: int, fee_bps: int) -> int:
    """
    Compute `floor(amount_in * fee_bps / 10_000)`.
    """
    _require_int("amount_in", amount_in)
    _require_int("fee_bps", fee_bps)
    if amount_in < 0:
        raise ValueError("amount_in must be non-negative")
    if not (0 <= fee_bps <= BPS_DENOM):
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOM}]")
    return (amount_in * fee_bps) // BPS_DENOM


def quote_exact_in(*, reserve_in: int, reserve_out: int, amount_in: int, fee_bps: int) -> QuoteExactInResult:
    """
    Quote an exact-in trade against `(reserve_in, reserve_out)`.

    `amount_in == 0` quotes 0. Raises ValueError when the curve is undefined
    (both the input side reserve and the net input are zero).
    """
    for name, v in (
        ("reserve_in", reserve_in),
        ("reserve_out", reserve_out),
        ("amount_in", amount_in),
        ("fee_bps", fee_bps),
    ):
        _require_int(name, v)
    if reserve_in < 0 or reserve_out < 0:
        raise ValueError(f"reserves must be non-negative: ({reserve_in}, {reserve_out})")
    if amount_in < 0:
        raise ValueError(f"amount_in must be non-negative: {amount_in}")
    if not (0 <= fee_bps <= BPS_DENOM):
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOM}]: {fee_bps}")

    fee_amount = compute_fee_amount(amount_in=amount_in, fee_bps=fee_bps)
    if amount_in == 0:
        return QuoteExactInResult(
            amount_out=0,
            amount_in=0,
            fee_amount=0,
            reserve_in=reserve_in,
            reserve_out=reserve_out,
        )

    net_in_scaled = amount_in * (BPS_DENOM - fee_bps)
    denominator = reserve_in * BPS_DENOM + net_in_scaled
    if denominator == 0:
        raise ValueError("curve undefined: zero input reserve and zero net input")

    amount_out = (net_in_scaled * reserve_out) // denominator
    if amount_out > reserve_out:
        raise AssertionError("quote exceeded reserve_out")

    return QuoteExactInResult(
        amount_out=amount_out,
        amount_in=amount_in,
        fee_amount=fee_amount,
        reserve_in=reserve_in,
        reserve_out=reserve_out,
    )
