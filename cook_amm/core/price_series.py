"""
Price time-series updates.

The latest candle absorbs every trade in its minute; a trade in a later minute
appends a fresh candle. Candles are never merged or pruned, so the series only
grows, one `CANDLE_SIZE` step at a time, until it is full and the pool rolls
over to a new series record.
"""

from __future__ import annotations

from typing import Tuple

from ..state.time_series import Candle, PriceTimeSeries
from .checked import checked_div, require_finite
from .errors import TemporalRejection


def compute_price(base_reserve: int, quote_reserve: int, base_decimals: int, quote_decimals: int) -> float:
    """Quote per base in display units."""
    base = base_reserve / 10.0 ** base_decimals
    quote = quote_reserve / 10.0 ** quote_decimals
    return checked_div(quote, base, what="price")


def to_display(amount: int, decimals: int) -> float:
    return require_finite(amount / 10.0 ** decimals, what="display_amount")


def seed_series(minute: int, price: float) -> PriceTimeSeries:
    """Series for a new pool: one candle at `price` with zero volume."""
    require_finite(price, what="price")
    return PriceTimeSeries((Candle.opening(minute, price, 0.0),))


def update_price_series(
    series: PriceTimeSeries, minute: int, price: float, base_volume: float
) -> Tuple[PriceTimeSeries, bool]:
    """
    Fold one trade into the series.

    Returns:
        `(new_series, appended)` where `appended` is True iff a candle was added

    Raises:
        TemporalRejection: If `minute` is earlier than the latest candle
        ArithmeticRejection: If `price` or `base_volume` is not finite
    """
    require_finite(price, what="price")
    require_finite(base_volume, what="volume")
    if not series.candles:
        return PriceTimeSeries((Candle.opening(minute, price, base_volume),)), True

    latest = series.latest
    if minute == latest.minute:
        updated = latest.with_trade(price, base_volume)
        return PriceTimeSeries(series.candles[:-1] + (updated,)), False
    if minute < latest.minute:
        raise TemporalRejection("stale_minute")
    return PriceTimeSeries(series.candles + (Candle.opening(minute, price, base_volume),)), True


def roll_series(series: PriceTimeSeries, max_candles: int) -> Tuple[PriceTimeSeries, bool]:
    """
    Move the newest candle into a fresh series once `series` exceeds `max_candles`.

    The previous record keeps its first `max_candles` candles unchanged; the
    caller stores the returned series in the pool's next series record.
    """
    if len(series) <= max_candles:
        return series, False
    return PriceTimeSeries((series.latest,)), True
