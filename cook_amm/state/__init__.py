"""
State management for the Cook AMM engine
"""

from .balances import NATIVE_ASSET, BalanceTable
from .identity import derive_identity
from .plugins import LiquidityScaling, PluginSet, PluginTag, TradeToEarn
from .pools import PoolState, compute_pool_id
from .rewards import PoolRewardDay, TraderRecord, UserRewardDay
from .storage import InMemoryRecordStore, RecordStore, get_or_create
from .time_series import Candle, PriceTimeSeries

__all__ = [
    "NATIVE_ASSET",
    "BalanceTable",
    "derive_identity",
    "LiquidityScaling",
    "PluginSet",
    "PluginTag",
    "TradeToEarn",
    "PoolState",
    "compute_pool_id",
    "PoolRewardDay",
    "TraderRecord",
    "UserRewardDay",
    "InMemoryRecordStore",
    "RecordStore",
    "get_or_create",
    "Candle",
    "PriceTimeSeries",
]
