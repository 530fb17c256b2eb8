"""
Append-only OHLCV price series, one candle per minute.

A candle serializes to `CANDLE_SIZE` bytes (i64 minute + five f32 values), so the
backing record grows by exactly that much whenever a new minute is appended.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

SECONDS_PER_MINUTE = 60

CANDLE_SIZE = 8 + 5 * 4
# record type tag (u8) + candle count (u32)
SERIES_HEADER_SIZE = 1 + 4


def minute_of(unix_timestamp: int) -> int:
    """Minute index containing `unix_timestamp`."""
    if unix_timestamp < 0:
        raise ValueError(f"timestamp must be non-negative: {unix_timestamp}")
    return unix_timestamp // SECONDS_PER_MINUTE


@dataclass(frozen=True)
class Candle:
    minute: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @classmethod
    def opening(cls, minute: int, price: float, volume: float) -> "Candle":
        return cls(minute=minute, open=price, high=price, low=price, close=price, volume=volume)

    def with_trade(self, price: float, volume: float) -> "Candle":
        return replace(
            self,
            high=max(self.high, price),
            low=min(self.low, price),
            close=price,
            volume=self.volume + volume,
        )


@dataclass(frozen=True)
class PriceTimeSeries:
    candles: Tuple[Candle, ...] = ()

    def __post_init__(self) -> None:
        for prev, cur in zip(self.candles, self.candles[1:]):
            if cur.minute <= prev.minute:
                raise ValueError(f"candles must have strictly increasing minutes: {prev.minute} -> {cur.minute}")

    @property
    def latest(self) -> Candle:
        if not self.candles:
            raise ValueError("price series is empty")
        return self.candles[-1]

    @property
    def encoded_size(self) -> int:
        return series_size(len(self.candles))

    def __len__(self) -> int:
        return len(self.candles)


def series_size(candle_count: int) -> int:
    return SERIES_HEADER_SIZE + candle_count * CANDLE_SIZE
