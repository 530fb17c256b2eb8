# [TESTER] v1

from __future__ import annotations

from dataclasses import replace

import pytest

from cook_amm.config import EngineConfig
from cook_amm.core.cpmm import Side, get_swap_amount
from cook_amm.core.engine import (
    ClaimRequest,
    ClaimState,
    SwapRequest,
    SwapState,
    claim_or_raise,
    claim_step,
    swap_or_raise,
    swap_step,
)
from cook_amm.core.errors import ArithmeticRejection, TemporalRejection
from cook_amm.core.liquidity import attach_trade_to_earn, create_pool, remove_liquidity
from cook_amm.core.price_series import seed_series
from cook_amm.core.trade_to_earn import SECONDS_PER_DAY
from cook_amm.state.plugins import LiquidityScaling, TradeToEarn
from cook_amm.state.rewards import PoolRewardDay, UserRewardDay


BASE = 1_000_000_000_000
QUOTE = 1_000_000_000


def _state(pool=None, **kw) -> SwapState:
    pool = pool or create_pool(base_asset="COOK", quote_asset="wsol", base_amount=BASE, quote_amount=QUOTE, fee_bps=25)
    return SwapState(pool=pool, series=seed_series(0, pool.last_price), **kw)


def _t2e_pool(**plugin_kw):
    pool = create_pool(base_asset="COOK", quote_asset="wsol", base_amount=BASE, quote_amount=QUOTE, fee_bps=25)
    pool, attached = attach_trade_to_earn(pool, 1_000_000, today=0)
    assert attached
    if plugin_kw:
        pool = pool.with_plugin(replace(pool.trade_to_earn, **plugin_kw))
    return pool


def test_buy_commits_reserves_points_and_candle() -> None:
    state = _state()
    res = swap_step(state, SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=120))
    assert res.accepted
    eff = res.effect
    assert eff.platform_fee == 50
    assert eff.quote.amount_in == 99_950
    assert eff.output_amount == get_swap_amount(99_950, Side.BUY, BASE, QUOTE, 25)
    assert eff.user_receives == eff.output_amount

    pool = res.state.pool
    assert pool.base_reserve == BASE - eff.output_amount
    assert pool.quote_reserve == QUOTE + 99_950
    assert pool.last_price == eff.price
    assert res.state.trader.total_points == 2
    assert eff.candle_appended
    assert res.state.series.latest.minute == 2
    assert eff.reward_day is None


def test_sell_takes_platform_fee_from_output() -> None:
    res = swap_step(_state(), SwapRequest(user="bob", side=Side.SELL, input_amount=10_000_000, now=0))
    assert res.accepted
    eff = res.effect
    assert eff.quote.amount_in == 10_000_000
    assert eff.platform_fee == eff.output_amount * 5 // 10_000
    assert eff.user_receives == eff.output_amount - eff.platform_fee
    assert res.state.pool.quote_reserve == QUOTE - eff.output_amount
    assert not eff.candle_appended


def test_trader_points_accumulate() -> None:
    state = _state()
    for now in (0, 1, 2):
        state = swap_step(state, SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=now)).state
    assert state.trader.total_points == 6


def test_zero_output_is_rejected_without_state() -> None:
    pool = create_pool(base_asset="COOK", quote_asset="wsol", base_amount=1_000_000, quote_amount=1_000_000, fee_bps=25)
    res = swap_step(_state(pool), SwapRequest(user="alice", side=Side.BUY, input_amount=1, now=0))
    assert not res.accepted
    assert res.rejection == "arithmetic:zero_output"
    assert res.state is None
    with pytest.raises(ArithmeticRejection):
        swap_or_raise(_state(pool), SwapRequest(user="alice", side=Side.BUY, input_amount=1, now=0))


def test_stale_trade_is_rejected() -> None:
    state = replace(_state(), series=seed_series(10, 0.001))
    res = swap_step(state, SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=0))
    assert res.rejection == "temporal:stale_minute"


def test_scaling_turns_off_for_good_once_threshold_is_reached() -> None:
    pool = create_pool(
        base_asset="COOK",
        quote_asset="wsol",
        base_amount=BASE,
        quote_amount=QUOTE,
        fee_bps=25,
        liquidity_scaling=LiquidityScaling(scalar=15, threshold=QUOTE + 50_000),
    )
    res = swap_step(_state(pool), SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=0))
    assert res.effect.quote.scaled
    assert res.effect.scaling_deactivated
    pool = res.state.pool
    assert not pool.liquidity_scaling.active

    # Pull the quote reserve back under the threshold; scaling stays off.
    pool, _, _ = remove_liquidity(pool, pool.lp_supply // 2)
    assert pool.quote_reserve < pool.liquidity_scaling.threshold
    assert not pool.liquidity_scaling.active
    res = swap_step(_state(pool), SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=0))
    assert not res.effect.quote.scaled
    assert not res.effect.scaling_deactivated


def test_buys_accrue_reward_volume_within_window() -> None:
    state = _state(_t2e_pool())
    res = swap_step(state, SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=9 * SECONDS_PER_DAY))
    assert res.effect.reward_day == 9
    assert res.state.pool_day.token_rewards == 500_000
    assert res.state.pool_day.buy_amount == res.effect.output_amount
    assert res.state.user_day.buy_amount == res.effect.output_amount
    assert res.state.pool.trade_to_earn.last_reward_day == 9


def test_sells_and_late_buys_do_not_accrue() -> None:
    state = _state(_t2e_pool())
    sell = swap_step(state, SwapRequest(user="alice", side=Side.SELL, input_amount=10_000_000, now=SECONDS_PER_DAY))
    assert sell.effect.reward_day is None
    assert sell.state.pool_day is None

    late = swap_step(state, SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=30 * SECONDS_PER_DAY))
    assert late.accepted
    assert late.effect.reward_day is None
    assert late.state.user_day is None


def _claim_state(pool, pool_day=None, user_day=None) -> ClaimState:
    return ClaimState(pool=pool, pool_day=pool_day, user_day=user_day)


def test_claim_pays_share_and_closes_records() -> None:
    pool = _t2e_pool(last_reward_day=9)
    pool_day = PoolRewardDay(pool_id=pool.pool_id, day=9, token_rewards=500_000, buy_amount=1_000)
    user_day = UserRewardDay(pool_id=pool.pool_id, user="alice", day=9, buy_amount=1_000)
    res = claim_step(_claim_state(pool, pool_day, user_day), ClaimRequest(user="alice", day=9, now=10 * SECONDS_PER_DAY))
    assert res.accepted
    assert res.effect.payout == 500_000
    assert res.effect.close_user_day
    assert res.effect.close_pool_day


def test_second_claim_pays_nothing() -> None:
    pool = _t2e_pool(last_reward_day=9)
    pool_day = PoolRewardDay(pool_id=pool.pool_id, day=9, token_rewards=500_000, buy_amount=1_000, amount_distributed=300_000, fraction_distributed=0.6)
    req = ClaimRequest(user="alice", day=9, now=10 * SECONDS_PER_DAY)
    # User record already closed, bucket still open.
    assert claim_step(_claim_state(pool, pool_day), req).effect.payout == 0
    # Both records closed.
    assert claim_step(_claim_state(pool), req).effect.payout == 0


def test_claim_rejections() -> None:
    now = 10 * SECONDS_PER_DAY
    plain = create_pool(base_asset="COOK", quote_asset="wsol", base_amount=BASE, quote_amount=QUOTE, fee_bps=25)
    assert claim_step(_claim_state(plain), ClaimRequest(user="a", day=1, now=now)).rejection == "validation:no_trade_to_earn"

    fresh = _t2e_pool()
    assert claim_step(_claim_state(fresh), ClaimRequest(user="a", day=10, now=now)).rejection == "temporal:same_day_claim"
    assert claim_step(_claim_state(fresh), ClaimRequest(user="a", day=11, now=now)).rejection == "temporal:future_day_claim"
    assert claim_step(_claim_state(fresh), ClaimRequest(user="a", day=3, now=now)).rejection == "temporal:no_reward_day"

    opened = _t2e_pool(last_reward_day=9)
    user_day = UserRewardDay(pool_id=opened.pool_id, user="a", day=9, buy_amount=5)
    res = claim_step(_claim_state(opened, None, user_day), ClaimRequest(user="a", day=9, now=now))
    assert res.rejection == "temporal:budget_exhausted"

    empty = PoolRewardDay(pool_id=opened.pool_id, day=9, token_rewards=0, buy_amount=5)
    with pytest.raises(TemporalRejection, match="zero_budget"):
        claim_or_raise(_claim_state(opened, empty, user_day), ClaimRequest(user="a", day=9, now=now))


def test_config_reward_window_is_honored() -> None:
    state = _state(_t2e_pool())
    res = swap_step(
        state,
        SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=5 * SECONDS_PER_DAY),
        config=EngineConfig(reward_days=5),
    )
    assert res.effect.reward_day is None


def test_trade_to_earn_plugin_roundtrips_through_pool() -> None:
    pool = _t2e_pool()
    assert isinstance(pool.trade_to_earn, TradeToEarn)
    assert pool.trade_to_earn.total_tokens == 1_000_000


def test_negative_timestamps_are_validation_rejections() -> None:
    res = swap_step(_state(), SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=-60))
    assert res.rejection == "validation:now_out_of_range"

    claim = claim_step(ClaimState(pool=_t2e_pool()), ClaimRequest(user="alice", day=0, now=-1))
    assert claim.rejection == "validation:now_out_of_range"


def test_full_series_opens_next_series_record() -> None:
    config = EngineConfig(max_candles_per_series=2)
    state = _state()
    state = swap_step(state, SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=60), config=config).state
    assert len(state.series) == 2 and state.pool.price_series_count == 1

    res = swap_step(state, SwapRequest(user="alice", side=Side.BUY, input_amount=100_000, now=120), config=config)
    assert res.effect.series_rolled
    assert res.state.pool.price_series_count == 2
    assert [c.minute for c in res.state.series.candles] == [2]
