"""
Pool state for the launchpad AMM.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from .balances import Amount, AssetId
from .identity import POOL_PROVIDER_COOK, pool_identity
from .plugins import LiquidityScaling, PluginSet, TradeToEarn


def compute_pool_id(base_asset: AssetId, quote_asset: AssetId, provider: str = POOL_PROVIDER_COOK) -> str:
    """
    Deterministically compute a pool_id for a base/quote pair.

    The pair is sorted before hashing, so the id does not depend on which asset
    is called base.
    """
    if not isinstance(provider, str) or not provider:
        raise ValueError("provider must be a non-empty string")
    return pool_identity(base_asset, quote_asset, provider)


@dataclass(frozen=True)
class PoolState:
    """
    State of a launchpad pool.

    Attributes:
        pool_id: Derived pool identity (hex string)
        base_asset: Asset being launched
        quote_asset: Asset paid for it (usually wrapped SOL)
        base_reserve: Base units held by the pool
        quote_reserve: Quote units held by the pool
        fee_bps: Pool fee in basis points, fixed at creation
        base_decimals: Display decimals of the base asset
        quote_decimals: Display decimals of the quote asset
        lp_supply: Outstanding LP tokens
        last_price: Last traded price (quote per base, decimals adjusted)
        created_at: Unix timestamp of pool creation
        price_series_count: Number of price-series records owned by the pool
        plugins: Attached plugins
    """

    pool_id: str
    base_asset: AssetId
    quote_asset: AssetId
    base_reserve: Amount
    quote_reserve: Amount
    fee_bps: int
    base_decimals: int = 9
    quote_decimals: int = 9
    lp_supply: Amount = 0
    last_price: float = 0.0
    created_at: int = 0
    price_series_count: int = 1
    plugins: PluginSet = field(default_factory=PluginSet)

    def __post_init__(self) -> None:
        if self.base_asset == self.quote_asset:
            raise ValueError(f"base and quote assets must differ: {self.base_asset}")
        if not (0 <= self.fee_bps <= 10_000):
            raise ValueError(f"fee_bps must be in [0, 10000]: {self.fee_bps}")
        if self.base_reserve < 0 or self.quote_reserve < 0:
            raise ValueError(
                f"Reserves must be non-negative: ({self.base_reserve}, {self.quote_reserve})"
            )
        if self.lp_supply < 0:
            raise ValueError(f"LP supply must be non-negative: {self.lp_supply}")
        for name in ("base_decimals", "quote_decimals"):
            value = getattr(self, name)
            if not (0 <= value <= 255):
                raise ValueError(f"{name} must fit in u8: {value}")

    @property
    def liquidity_scaling(self) -> Optional[LiquidityScaling]:
        return self.plugins.liquidity_scaling

    @property
    def trade_to_earn(self) -> Optional[TradeToEarn]:
        return self.plugins.trade_to_earn

    def with_reserves(self, *, base_reserve: Amount, quote_reserve: Amount) -> "PoolState":
        return replace(self, base_reserve=base_reserve, quote_reserve=quote_reserve)

    def with_plugin(self, plugin) -> "PoolState":
        return replace(self, plugins=self.plugins.with_plugin(plugin))

    def __repr__(self) -> str:
        return (
            f"PoolState(pool_id={self.pool_id[:16]}..., "
            f"reserves=({self.base_reserve}, {self.quote_reserve}), "
            f"fee_bps={self.fee_bps}, plugins={len(self.plugins)})"
        )
