"""
Binary record layouts.

Every record starts with a one-byte `RecordType` tag. Integers are little-endian
and fixed width (amounts u64, day indices u32); strings are UTF-8 with a u16
length prefix. Candles use f32 prices and volume, so values read back from a
price-series record are f32-rounded.
"""

from __future__ import annotations

from enum import IntEnum, unique
import struct
from typing import List, Tuple, Union

from .plugins import LiquidityScaling, Plugin, PluginSet, PluginTag, TradeToEarn
from .pools import PoolState
from .rewards import PoolRewardDay, TraderRecord, UserRewardDay
from .time_series import CANDLE_SIZE, Candle, PriceTimeSeries


@unique
class RecordType(IntEnum):
    POOL = 1
    PRICE_SERIES = 2
    POOL_REWARD_DAY = 3
    USER_REWARD_DAY = 4
    TRADER = 5


class RecordDecodeError(ValueError):
    """Raised when bytes do not decode as the expected record type."""


class RecordEncodeError(ValueError):
    """Raised when a value does not fit its field in the record layout."""


_CANDLE = struct.Struct("<qfffff")
_SERIES_HEADER = struct.Struct("<BI")
_POOL_BODY = struct.Struct("<QQHBBQdqI")
_SCALING_BODY = struct.Struct("<QQ?")
_T2E_BODY = struct.Struct("<QII")
_POOL_DAY_BODY = struct.Struct("<IQQQd")
_USER_DAY_BODY = struct.Struct("<IQQ")
_TRADER_BODY = struct.Struct("<Q")

assert _CANDLE.size == CANDLE_SIZE


def _pack(fmt: struct.Struct, *values) -> bytes:
    try:
        return fmt.pack(*values)
    except (struct.error, OverflowError) as exc:
        # f32 fields overflow with OverflowError rather than struct.error.
        raise RecordEncodeError(f"value out of range for record layout: {exc}") from exc


def _pack_str(value: str) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) > 0xFFFF:
        raise RecordEncodeError("string too long for record layout")
    return struct.pack("<H", len(raw)) + raw


class _Reader:
    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    def unpack(self, fmt: struct.Struct) -> Tuple:
        end = self._pos + fmt.size
        if end > len(self._data):
            raise RecordDecodeError("record truncated")
        out = fmt.unpack_from(self._data, self._pos)
        self._pos = end
        return out

    def u8(self) -> int:
        return self.unpack(struct.Struct("<B"))[0]

    def string(self) -> str:
        (n,) = self.unpack(struct.Struct("<H"))
        end = self._pos + n
        if end > len(self._data):
            raise RecordDecodeError("record truncated")
        raw = self._data[self._pos:end]
        self._pos = end
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RecordDecodeError("invalid UTF-8 in record") from exc

    def expect_type(self, record_type: RecordType) -> None:
        if not self._data:
            raise RecordDecodeError("empty record")
        tag = self.u8()
        if tag != record_type:
            raise RecordDecodeError(f"expected {record_type.name} record, found tag {tag}")

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise RecordDecodeError(f"trailing bytes in record: {len(self._data) - self._pos}")


def record_type_of(data: bytes) -> RecordType:
    if not data:
        raise RecordDecodeError("empty record")
    try:
        return RecordType(data[0])
    except ValueError as exc:
        raise RecordDecodeError(f"unknown record type tag: {data[0]}") from exc


# -- plugins -----------------------------------------------------------------


def _encode_plugin(plugin: Plugin) -> bytes:
    head = struct.pack("<B", int(plugin.TAG))
    if isinstance(plugin, LiquidityScaling):
        return head + _pack(_SCALING_BODY, plugin.scalar, plugin.threshold, plugin.active)
    if isinstance(plugin, TradeToEarn):
        return head + _pack(_T2E_BODY, plugin.total_tokens, plugin.first_reward_day, plugin.last_reward_day)
    raise TypeError(f"unsupported plugin type: {type(plugin).__name__}")


def _decode_plugin(reader: _Reader) -> Plugin:
    tag = reader.u8()
    if tag == PluginTag.LIQUIDITY_SCALING:
        scalar, threshold, active = reader.unpack(_SCALING_BODY)
        return LiquidityScaling(scalar=scalar, threshold=threshold, active=active)
    if tag == PluginTag.TRADE_TO_EARN:
        total, first, last = reader.unpack(_T2E_BODY)
        return TradeToEarn(total_tokens=total, first_reward_day=first, last_reward_day=last)
    raise RecordDecodeError(f"unknown plugin tag: {tag}")


# -- pool --------------------------------------------------------------------


def encode_pool(pool: PoolState) -> bytes:
    out = bytearray(struct.pack("<B", RecordType.POOL))
    out += _pack_str(pool.pool_id)
    out += _pack_str(pool.base_asset)
    out += _pack_str(pool.quote_asset)
    out += _pack(
        _POOL_BODY,
        pool.base_reserve,
        pool.quote_reserve,
        pool.fee_bps,
        pool.base_decimals,
        pool.quote_decimals,
        pool.lp_supply,
        pool.last_price,
        pool.created_at,
        pool.price_series_count,
    )
    out += struct.pack("<B", len(pool.plugins))
    for plugin in pool.plugins:
        out += _encode_plugin(plugin)
    return bytes(out)


def decode_pool(data: bytes) -> PoolState:
    reader = _Reader(data)
    reader.expect_type(RecordType.POOL)
    pool_id = reader.string()
    base_asset = reader.string()
    quote_asset = reader.string()
    (
        base_reserve,
        quote_reserve,
        fee_bps,
        base_decimals,
        quote_decimals,
        lp_supply,
        last_price,
        created_at,
        series_count,
    ) = reader.unpack(_POOL_BODY)
    plugins: List[Plugin] = [_decode_plugin(reader) for _ in range(reader.u8())]
    reader.finish()
    try:
        return PoolState(
            pool_id=pool_id,
            base_asset=base_asset,
            quote_asset=quote_asset,
            base_reserve=base_reserve,
            quote_reserve=quote_reserve,
            fee_bps=fee_bps,
            base_decimals=base_decimals,
            quote_decimals=quote_decimals,
            lp_supply=lp_supply,
            last_price=last_price,
            created_at=created_at,
            price_series_count=series_count,
            plugins=PluginSet(tuple(plugins)),
        )
    except (TypeError, ValueError) as exc:
        raise RecordDecodeError(f"invalid pool record: {exc}") from exc


# -- price series --------------------------------------------------------------


def encode_price_series(series: PriceTimeSeries) -> bytes:
    out = bytearray(_pack(_SERIES_HEADER, RecordType.PRICE_SERIES, len(series)))
    for c in series.candles:
        out += _pack(_CANDLE, c.minute, c.open, c.high, c.low, c.close, c.volume)
    return bytes(out)


def decode_price_series(data: bytes) -> PriceTimeSeries:
    reader = _Reader(data)
    tag, count = reader.unpack(_SERIES_HEADER)
    if tag != RecordType.PRICE_SERIES:
        raise RecordDecodeError(f"expected PRICE_SERIES record, found tag {tag}")
    candles = []
    for _ in range(count):
        minute, o, h, l, c, v = reader.unpack(_CANDLE)
        candles.append(Candle(minute=minute, open=o, high=h, low=l, close=c, volume=v))
    reader.finish()
    try:
        return PriceTimeSeries(tuple(candles))
    except ValueError as exc:
        raise RecordDecodeError(f"invalid price series record: {exc}") from exc


# -- reward days ---------------------------------------------------------------


def encode_pool_reward_day(rec: PoolRewardDay) -> bytes:
    return (
        struct.pack("<B", RecordType.POOL_REWARD_DAY)
        + _pack_str(rec.pool_id)
        + _pack(
            _POOL_DAY_BODY,
            rec.day,
            rec.token_rewards,
            rec.buy_amount,
            rec.amount_distributed,
            rec.fraction_distributed,
        )
    )


def decode_pool_reward_day(data: bytes) -> PoolRewardDay:
    reader = _Reader(data)
    reader.expect_type(RecordType.POOL_REWARD_DAY)
    pool_id = reader.string()
    day, token_rewards, buy_amount, distributed, fraction = reader.unpack(_POOL_DAY_BODY)
    reader.finish()
    try:
        return PoolRewardDay(
            pool_id=pool_id,
            day=day,
            token_rewards=token_rewards,
            buy_amount=buy_amount,
            amount_distributed=distributed,
            fraction_distributed=fraction,
        )
    except ValueError as exc:
        raise RecordDecodeError(f"invalid pool reward day record: {exc}") from exc


def encode_user_reward_day(rec: UserRewardDay) -> bytes:
    return (
        struct.pack("<B", RecordType.USER_REWARD_DAY)
        + _pack_str(rec.pool_id)
        + _pack_str(rec.user)
        + _pack(_USER_DAY_BODY, rec.day, rec.buy_amount, rec.sell_amount)
    )


def decode_user_reward_day(data: bytes) -> UserRewardDay:
    reader = _Reader(data)
    reader.expect_type(RecordType.USER_REWARD_DAY)
    pool_id = reader.string()
    user = reader.string()
    day, buy_amount, sell_amount = reader.unpack(_USER_DAY_BODY)
    reader.finish()
    return UserRewardDay(pool_id=pool_id, user=user, day=day, buy_amount=buy_amount, sell_amount=sell_amount)


# -- trader --------------------------------------------------------------------


def encode_trader(rec: TraderRecord) -> bytes:
    return struct.pack("<B", RecordType.TRADER) + _pack_str(rec.user) + _pack(_TRADER_BODY, rec.total_points)


def decode_trader(data: bytes) -> TraderRecord:
    reader = _Reader(data)
    reader.expect_type(RecordType.TRADER)
    user = reader.string()
    (points,) = reader.unpack(_TRADER_BODY)
    reader.finish()
    return TraderRecord(user=user, total_points=points)


Record = Union[PoolState, PriceTimeSeries, PoolRewardDay, UserRewardDay, TraderRecord]

_DECODERS = {
    RecordType.POOL: decode_pool,
    RecordType.PRICE_SERIES: decode_price_series,
    RecordType.POOL_REWARD_DAY: decode_pool_reward_day,
    RecordType.USER_REWARD_DAY: decode_user_reward_day,
    RecordType.TRADER: decode_trader,
}


def decode_record(data: bytes) -> Record:
    """Decode any record by its leading type tag."""
    return _DECODERS[record_type_of(data)](data)
