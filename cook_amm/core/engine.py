"""Pure swap and claim steps.

``swap_step(state, request)`` sequences one trade:

1. Validates the request.
2. Takes the platform fee from a buy's input.
3. Quotes the trade (transfer fee, scaling simulator or calculator, guards).
4. Commits the aggregate reserve delta and flips liquidity scaling off once the
   committed quote reserve reaches its threshold.
5. Folds the post-trade price and base volume into the price series, opening
   the next series record when the current one is full.
6. Accrues buy volume into the day's reward records while the reward window is open.

``claim_step(state, request)`` pays a user's share of a past day bucket.

Both return a result with ``accepted=True`` and the new state, or
``accepted=False`` with a ``"<category>:<reason>"`` rejection. The
``*_or_raise`` variants raise the matching `EngineError` instead. Neither step
touches storage; the record shell commits the returned state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from loguru import logger

from ..config import EngineConfig
from ..state.plugins import NO_REWARD_DAY, LiquidityScaling
from ..state.pools import PoolState
from ..state.rewards import PoolRewardDay, TraderRecord, UserRewardDay
from ..state.time_series import PriceTimeSeries, minute_of
from .checked import SaturationAnomaly, checked_add, checked_sub, require_u32, require_u64
from .cpmm import Side, parse_side
from .errors import EngineError, TemporalRejection, ValidationRejection, rejection_from_code
from .price_series import compute_price, roll_series, to_display, update_price_series
from .quote import SwapQuote, quote_swap
from .trade_to_earn import day_index, distribute, record_buy, validate_claim_day
from .transfer_fee import TransferFeeLookup

_DEFAULT_CONFIG = EngineConfig()


# -- swap --------------------------------------------------------------------


@dataclass(frozen=True)
class SwapRequest:
    user: str
    side: Side
    input_amount: int
    now: int


@dataclass(frozen=True)
class SwapState:
    """Records a swap reads and may rewrite."""

    pool: PoolState
    series: PriceTimeSeries
    pool_day: Optional[PoolRewardDay] = None
    user_day: Optional[UserRewardDay] = None
    trader: Optional[TraderRecord] = None


@dataclass(frozen=True)
class SwapEffect:
    side: Side
    input_amount: int
    platform_fee: int
    quote: SwapQuote
    # Amount the user ends up with after a sell's platform fee.
    user_receives: int
    price: float
    candle_appended: bool
    # The new candle opened the pool's next series record.
    series_rolled: bool
    scaling_deactivated: bool
    reward_day: Optional[int]
    saturation_anomalies: Tuple[SaturationAnomaly, ...] = ()

    @property
    def output_amount(self) -> int:
        return self.quote.amount_out


@dataclass(frozen=True)
class SwapResult:
    accepted: bool
    state: Optional[SwapState] = None
    effect: Optional[SwapEffect] = None
    rejection: Optional[str] = None


def platform_fee(amount: int, config: EngineConfig) -> int:
    return amount * config.platform_fee_bps // 10_000


def _commit_reserves(pool: PoolState, quote: SwapQuote) -> PoolState:
    if quote.side is Side.BUY:
        return pool.with_reserves(
            base_reserve=checked_sub(pool.base_reserve, quote.amount_out, what="base_reserve"),
            quote_reserve=checked_add(pool.quote_reserve, quote.amount_received, what="quote_reserve"),
        )
    return pool.with_reserves(
        base_reserve=checked_add(pool.base_reserve, quote.amount_received, what="base_reserve"),
        quote_reserve=checked_sub(pool.quote_reserve, quote.amount_out, what="quote_reserve"),
    )


def _apply_scaling_transition(pool: PoolState) -> Tuple[PoolState, bool]:
    plugin: Optional[LiquidityScaling] = pool.liquidity_scaling
    if plugin is None or not plugin.active or pool.quote_reserve < plugin.threshold:
        return pool, False
    return pool.with_plugin(plugin.deactivated()), True


def _swap(state: SwapState, request: SwapRequest, config: EngineConfig, transfer_fees) -> Tuple[SwapState, SwapEffect]:
    side = parse_side(request.side)
    require_u64("input_amount", request.input_amount)
    require_u64("now", request.now)
    if not request.user:
        raise ValidationRejection("missing_user")

    anomalies: List[SaturationAnomaly] = []
    pool = state.pool

    fee_in = platform_fee(request.input_amount, config) if side is Side.BUY else 0
    swap_in = checked_sub(request.input_amount, fee_in, what="platform_fee")

    quote = quote_swap(pool, side, swap_in, config=config, transfer_fees=transfer_fees, anomalies=anomalies)

    pool = _commit_reserves(pool, quote)
    pool, deactivated = _apply_scaling_transition(pool)

    fee_out = platform_fee(quote.amount_out, config) if side is Side.SELL else 0
    user_receives = checked_sub(quote.amount_out, fee_out, what="platform_fee")

    price = compute_price(pool.base_reserve, pool.quote_reserve, pool.base_decimals, pool.quote_decimals)
    volume = to_display(quote.base_amount, pool.base_decimals)
    series, appended = update_price_series(state.series, minute_of(request.now), price, volume)
    series, rolled = roll_series(series, config.max_candles_per_series)
    pool = replace(
        pool,
        last_price=price,
        price_series_count=pool.price_series_count + 1 if rolled else pool.price_series_count,
    )

    pool_day, user_day = state.pool_day, state.user_day
    reward_day: Optional[int] = None
    plugin = pool.trade_to_earn
    if side is Side.BUY and plugin is not None:
        day = day_index(plugin, request.now)
        if day < config.reward_days:
            accrual = record_buy(
                plugin,
                pool_day,
                user_day,
                pool_id=pool.pool_id,
                user=request.user,
                day=day,
                base_amount=quote.base_amount,
            )
            pool = pool.with_plugin(accrual.plugin)
            pool_day, user_day = accrual.pool_day, accrual.user_day
            reward_day = day

    trader = (state.trader or TraderRecord(user=request.user)).with_swap()

    new_state = SwapState(pool=pool, series=series, pool_day=pool_day, user_day=user_day, trader=trader)
    effect = SwapEffect(
        side=side,
        input_amount=request.input_amount,
        platform_fee=fee_in + fee_out,
        quote=quote,
        user_receives=user_receives,
        price=price,
        candle_appended=appended,
        series_rolled=rolled,
        scaling_deactivated=deactivated,
        reward_day=reward_day,
        saturation_anomalies=tuple(anomalies),
    )
    return new_state, effect


def swap_step(
    state: SwapState,
    request: SwapRequest,
    *,
    config: EngineConfig = _DEFAULT_CONFIG,
    transfer_fees: Optional[TransferFeeLookup] = None,
) -> SwapResult:
    """Execute one swap against in-memory records.

    Returns ``SwapResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` reason string.
    """
    try:
        new_state, effect = _swap(state, request, config, transfer_fees)
    except EngineError as exc:
        return SwapResult(accepted=False, rejection=exc.code)
    logger.debug(
        "swap side={} in={} out={} price={:.9g} scaled={}",
        effect.side.name,
        effect.input_amount,
        effect.output_amount,
        effect.price,
        effect.quote.scaled,
    )
    return SwapResult(accepted=True, state=new_state, effect=effect)


def swap_or_raise(
    state: SwapState,
    request: SwapRequest,
    *,
    config: EngineConfig = _DEFAULT_CONFIG,
    transfer_fees: Optional[TransferFeeLookup] = None,
) -> SwapResult:
    """Like ``swap_step()`` but raises on rejection.

    Raises:
        ValidationRejection: Bad request or mismatched records.
        ArithmeticRejection: Zero output, dust floor, or a failed computation.
        TemporalRejection: Trade timestamp earlier than the latest candle.
    """
    result = swap_step(state, request, config=config, transfer_fees=transfer_fees)
    if not result.accepted:
        raise rejection_from_code(result.rejection or "")
    return result


# -- claim -------------------------------------------------------------------


@dataclass(frozen=True)
class ClaimRequest:
    user: str
    day: int
    now: int


@dataclass(frozen=True)
class ClaimState:
    pool: PoolState
    pool_day: Optional[PoolRewardDay] = None
    user_day: Optional[UserRewardDay] = None


@dataclass(frozen=True)
class ClaimEffect:
    day: int
    payout: int
    close_pool_day: bool
    close_user_day: bool


@dataclass(frozen=True)
class ClaimResult:
    accepted: bool
    state: Optional[ClaimState] = None
    effect: Optional[ClaimEffect] = None
    rejection: Optional[str] = None


def _claim(state: ClaimState, request: ClaimRequest) -> Tuple[ClaimState, ClaimEffect]:
    require_u32("day", request.day)
    require_u64("now", request.now)
    if not request.user:
        raise ValidationRejection("missing_user")
    plugin = state.pool.trade_to_earn
    if plugin is None:
        raise ValidationRejection("no_trade_to_earn")

    validate_claim_day(request.day, day_index(plugin, request.now))

    pool_day, user_day = state.pool_day, state.user_day
    if user_day is not None and (
        user_day.pool_id != state.pool.pool_id
        or user_day.user != request.user
        or user_day.day != request.day
    ):
        raise ValidationRejection("user_day_mismatch")
    nothing_to_claim = ClaimEffect(day=request.day, payout=0, close_pool_day=False, close_user_day=False)

    if pool_day is None:
        if plugin.last_reward_day == NO_REWARD_DAY or request.day > plugin.last_reward_day:
            raise TemporalRejection("no_reward_day")
        # The bucket existed and was closed once fully paid out.
        if user_day is None or user_day.buy_amount == 0:
            return state, nothing_to_claim
        raise TemporalRejection("budget_exhausted")
    if pool_day.pool_id != state.pool.pool_id or pool_day.day != request.day:
        raise ValidationRejection("pool_day_mismatch")
    if pool_day.token_rewards == 0:
        raise TemporalRejection("zero_budget")
    if user_day is None:
        return state, nothing_to_claim

    dist = distribute(pool_day, user_day)
    new_state = ClaimState(pool=state.pool, pool_day=dist.pool_day, user_day=dist.user_day)
    effect = ClaimEffect(
        day=request.day,
        payout=dist.payout,
        close_pool_day=dist.pool_day_exhausted,
        close_user_day=True,
    )
    return new_state, effect


def claim_step(state: ClaimState, request: ClaimRequest) -> ClaimResult:
    """Pay ``request.user`` their share of day ``request.day``."""
    try:
        new_state, effect = _claim(state, request)
    except EngineError as exc:
        return ClaimResult(accepted=False, rejection=exc.code)
    return ClaimResult(accepted=True, state=new_state, effect=effect)


def claim_or_raise(state: ClaimState, request: ClaimRequest) -> ClaimResult:
    """Like ``claim_step()`` but raises on rejection.

    Raises:
        ValidationRejection: Missing plugin or mismatched records.
        TemporalRejection: Current/future day, missing reward-day record, zero budget.
        ArithmeticRejection: Zero pool volume or a failed computation.
    """
    result = claim_step(state, request)
    if not result.accepted:
        raise rejection_from_code(result.rejection or "")
    return result
