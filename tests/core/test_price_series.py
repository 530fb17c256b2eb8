# [TESTER] v1

from __future__ import annotations

import pytest
from hypothesis import given, settings
import hypothesis.strategies as st

from cook_amm.core.errors import ArithmeticRejection, TemporalRejection
from cook_amm.core.price_series import compute_price, roll_series, seed_series, update_price_series
from cook_amm.state.time_series import CANDLE_SIZE, minute_of, series_size


def test_trade_in_same_minute_updates_latest_candle() -> None:
    series = seed_series(100, 2.0)
    series, appended = update_price_series(series, 100, 3.0, 5.0)
    series, _ = update_price_series(series, 100, 1.5, 1.0)
    assert not appended
    assert len(series) == 1
    c = series.latest
    assert (c.open, c.high, c.low, c.close, c.volume) == (2.0, 3.0, 1.5, 1.5, 6.0)


def test_trade_in_later_minute_appends_candle() -> None:
    series = seed_series(100, 2.0)
    grown, appended = update_price_series(series, 103, 2.5, 4.0)
    assert appended
    assert len(grown) == 2
    assert grown.latest.minute == 103
    assert grown.latest.open == 2.5
    assert grown.encoded_size - series.encoded_size == CANDLE_SIZE


def test_stale_minute_is_rejected() -> None:
    series = seed_series(100, 2.0)
    with pytest.raises(TemporalRejection):
        update_price_series(series, 99, 2.0, 1.0)


def test_non_finite_price_is_rejected() -> None:
    with pytest.raises(ArithmeticRejection):
        update_price_series(seed_series(1, 1.0), 1, float("nan"), 1.0)


def test_compute_price_uses_display_units() -> None:
    assert compute_price(2_000_000_000, 1_000_000_000, 9, 9) == pytest.approx(0.5)
    assert compute_price(1_000_000, 1_000_000_000, 6, 9) == pytest.approx(1.0)
    with pytest.raises(ArithmeticRejection):
        compute_price(0, 1, 9, 9)


def test_minute_of_floors_timestamp() -> None:
    assert minute_of(0) == 0
    assert minute_of(119) == 1
    assert series_size(0) + CANDLE_SIZE == series_size(1)


@settings(max_examples=100, deadline=None)
@given(steps=st.lists(st.integers(min_value=0, max_value=3), min_size=1, max_size=40))
def test_series_grows_by_one_candle_per_new_minute(steps) -> None:
    series = seed_series(0, 1.0)
    minute = 0
    for step in steps:
        minute += step
        series, appended = update_price_series(series, minute, 1.0, 1.0)
        assert appended == (step > 0)
    assert len(series) == 1 + sum(1 for s in steps if s > 0)
    assert series.encoded_size == series_size(len(series))


def test_full_series_rolls_newest_candle_into_fresh_series() -> None:
    series = seed_series(0, 1.0)
    series, _ = update_price_series(series, 1, 1.5, 1.0)
    kept, rolled = roll_series(series, 2)
    assert not rolled and kept is series

    series, _ = update_price_series(series, 2, 2.0, 3.0)
    fresh, rolled = roll_series(series, 2)
    assert rolled
    assert len(fresh) == 1
    assert fresh.latest == series.latest
