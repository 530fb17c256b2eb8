# [TESTER] v1

from __future__ import annotations

import pytest
from hypothesis import given, settings
import hypothesis.strategies as st

from cook_amm.kernels.python.cpmm_quote_v1 import compute_fee_amount, quote_exact_in


def test_quote_matches_hand_computed_floor() -> None:
    res = quote_exact_in(reserve_in=1_000_000, reserve_out=1_000_000, amount_in=10_000, fee_bps=25)
    # 10_000 * 9_975 * 1e6 / (1e6 * 1e4 + 10_000 * 9_975) = 9876.48...
    assert res.amount_out == 9876
    assert res.fee_amount == 25


def test_zero_input_quotes_zero() -> None:
    res = quote_exact_in(reserve_in=5, reserve_out=5, amount_in=0, fee_bps=30)
    assert res.amount_out == 0
    assert res.fee_amount == 0


def test_undefined_curve_is_rejected() -> None:
    with pytest.raises(ValueError, match="curve undefined"):
        quote_exact_in(reserve_in=0, reserve_out=10, amount_in=5, fee_bps=10_000)


def test_bad_arguments_are_rejected() -> None:
    with pytest.raises(ValueError):
        quote_exact_in(reserve_in=-1, reserve_out=10, amount_in=5, fee_bps=0)
    with pytest.raises(ValueError):
        quote_exact_in(reserve_in=1, reserve_out=10, amount_in=5, fee_bps=10_001)
    with pytest.raises(TypeError):
        quote_exact_in(reserve_in=1, reserve_out=10, amount_in=True, fee_bps=0)  # type: ignore[arg-type]


def test_fee_amount_is_floor() -> None:
    assert compute_fee_amount(amount_in=399, fee_bps=25) == 0
    assert compute_fee_amount(amount_in=400, fee_bps=25) == 1


@settings(max_examples=300, deadline=None)
@given(
    reserve_in=st.integers(min_value=1, max_value=2**64 - 1),
    reserve_out=st.integers(min_value=1, max_value=2**64 - 1),
    amount_in=st.integers(min_value=1, max_value=2**64 - 1),
    fee_bps=st.integers(min_value=1, max_value=10_000),
)
def test_fee_strictly_reduces_output_below_zero_fee_curve(reserve_in, reserve_out, amount_in, fee_bps) -> None:
    out = quote_exact_in(
        reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in, fee_bps=fee_bps
    ).amount_out
    # out < amount_in * reserve_out / (reserve_in + amount_in), compared without division.
    assert out * (reserve_in + amount_in) < amount_in * reserve_out
    assert 0 <= out < reserve_out


@settings(max_examples=200, deadline=None)
@given(
    reserve_in=st.integers(min_value=1, max_value=10**18),
    reserve_out=st.integers(min_value=1, max_value=10**18),
    amount_in=st.integers(min_value=1, max_value=10**18),
    fee_bps=st.integers(min_value=0, max_value=9_999),
)
def test_output_is_monotone_in_input(reserve_in, reserve_out, amount_in, fee_bps) -> None:
    a = quote_exact_in(reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in, fee_bps=fee_bps)
    b = quote_exact_in(reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in + 1, fee_bps=fee_bps)
    assert b.amount_out >= a.amount_out
