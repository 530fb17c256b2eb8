"""
Pool lifecycle math: creation, reward attachment, and adding or removing liquidity.
"""

from __future__ import annotations

from dataclasses import replace
import math
from typing import Optional, Tuple

from ..state.balances import Amount, AssetId
from ..state.plugins import NO_REWARD_DAY, LiquidityScaling, PluginSet, TradeToEarn
from ..state.pools import PoolState, compute_pool_id
from .checked import checked_add, checked_sub
from .cpmm import MIN_RESERVE_DUST
from .errors import ArithmeticRejection, ValidationRejection
from .price_series import compute_price


def initial_lp(base_amount: Amount, quote_amount: Amount) -> Amount:
    """LP minted for the first deposit: floor(sqrt(base * quote))."""
    if base_amount < 0 or quote_amount < 0:
        raise ValueError(f"amounts must be non-negative: ({base_amount}, {quote_amount})")
    return math.isqrt(base_amount * quote_amount)


def create_pool(
    *,
    base_asset: AssetId,
    quote_asset: AssetId,
    base_amount: Amount,
    quote_amount: Amount,
    fee_bps: int,
    base_decimals: int = 9,
    quote_decimals: int = 9,
    created_at: int = 0,
    liquidity_scaling: Optional[LiquidityScaling] = None,
) -> PoolState:
    """
    Build the initial pool state from the deposited amounts.

    Raises:
        ValidationRejection: On identical assets, empty deposits or a bad fee
    """
    if base_asset == quote_asset:
        raise ValidationRejection("identical_assets")
    if base_amount <= 0 or quote_amount <= 0:
        raise ValidationRejection("zero_liquidity")
    if not (0 <= fee_bps <= 10_000):
        raise ValidationRejection("fee_out_of_range")

    plugins = PluginSet((liquidity_scaling,)) if liquidity_scaling is not None else PluginSet()
    return PoolState(
        pool_id=compute_pool_id(base_asset, quote_asset),
        base_asset=base_asset,
        quote_asset=quote_asset,
        base_reserve=base_amount,
        quote_reserve=quote_amount,
        fee_bps=fee_bps,
        base_decimals=base_decimals,
        quote_decimals=quote_decimals,
        lp_supply=initial_lp(base_amount, quote_amount),
        last_price=compute_price(base_amount, quote_amount, base_decimals, quote_decimals),
        created_at=created_at,
        plugins=plugins,
    )


def attach_trade_to_earn(pool: PoolState, total_tokens: Amount, today: int) -> Tuple[PoolState, bool]:
    """
    Attach the trade-to-earn plugin funded with `total_tokens`.

    Returns `(pool, attached)`; a pool that already has the plugin is returned
    unchanged with `attached=False`.
    """
    if pool.trade_to_earn is not None:
        return pool, False
    if total_tokens <= 0:
        raise ValidationRejection("zero_reward_tokens")
    plugin = TradeToEarn(total_tokens=total_tokens, first_reward_day=today, last_reward_day=NO_REWARD_DAY)
    return pool.with_plugin(plugin), True


def optimal_deposit(pool: PoolState, base_desired: Amount, quote_desired: Amount) -> Tuple[Amount, Amount]:
    """
    Ratio-preserving amounts to take from a deposit of at most
    `(base_desired, quote_desired)`. The side that would overshoot the pool ratio
    is scaled down; the other is used in full.
    """
    if base_desired <= 0 or quote_desired <= 0:
        raise ValidationRejection("zero_liquidity")
    if pool.base_reserve == 0 or pool.quote_reserve == 0:
        raise ValidationRejection("empty_pool")
    quote_for_base = base_desired * pool.quote_reserve // pool.base_reserve
    if quote_for_base <= quote_desired:
        return base_desired, quote_for_base
    return quote_desired * pool.base_reserve // pool.quote_reserve, quote_desired


def add_liquidity(
    pool: PoolState, base_amount: Amount, quote_amount: Amount, *, min_lp: Amount = 0
) -> Tuple[PoolState, Amount]:
    """
    Deposit `base_amount` and `quote_amount` into an existing pool.

    LP minted is `min(base_amount * S / base_reserve, quote_amount * S / quote_reserve)`
    with `S` the LP supply, so an off-ratio deposit is credited at the scarcer
    side. The liquidity scaling plugin is left as it is.

    Returns:
        `(new_pool, lp_minted)`
    """
    if base_amount < 0 or quote_amount < 0:
        raise ValidationRejection("negative_amount")
    if pool.base_reserve == 0 or pool.quote_reserve == 0 or pool.lp_supply == 0:
        raise ValidationRejection("empty_pool")
    lp_minted = min(
        base_amount * pool.lp_supply // pool.base_reserve,
        quote_amount * pool.lp_supply // pool.quote_reserve,
    )
    if lp_minted == 0:
        raise ArithmeticRejection("zero_lp_minted")
    if lp_minted < min_lp:
        raise ValidationRejection("lp_below_minimum")

    new_pool = replace(
        pool,
        base_reserve=checked_add(pool.base_reserve, base_amount, what="base_reserve"),
        quote_reserve=checked_add(pool.quote_reserve, quote_amount, what="quote_reserve"),
        lp_supply=checked_add(pool.lp_supply, lp_minted, what="lp_supply"),
    )
    return new_pool, lp_minted


def remove_liquidity(
    pool: PoolState, lp_amount: Amount, *, dust_floor: int = MIN_RESERVE_DUST
) -> Tuple[PoolState, Amount, Amount]:
    """
    Burn `lp_amount` LP tokens for a proportional share of both reserves.

    The liquidity scaling plugin is left as it is; a deactivated plugin stays
    deactivated even if the quote reserve drops back under its threshold.

    Returns:
        `(new_pool, base_out, quote_out)`
    """
    if lp_amount <= 0:
        raise ValidationRejection("zero_lp_amount")
    if pool.lp_supply == 0 or lp_amount > pool.lp_supply:
        raise ValidationRejection("lp_amount_exceeds_supply")

    base_out = pool.base_reserve * lp_amount // pool.lp_supply
    quote_out = pool.quote_reserve * lp_amount // pool.lp_supply
    if pool.base_reserve - base_out < dust_floor:
        raise ArithmeticRejection("dust_floor_base")
    if pool.quote_reserve - quote_out < dust_floor:
        raise ArithmeticRejection("dust_floor_quote")

    new_pool = replace(
        pool,
        base_reserve=checked_sub(pool.base_reserve, base_out, what="base_reserve"),
        quote_reserve=checked_sub(pool.quote_reserve, quote_out, what="quote_reserve"),
        lp_supply=checked_sub(pool.lp_supply, lp_amount, what="lp_supply"),
    )
    return new_pool, base_out, quote_out
