"""
Trade-to-earn scheduling and distribution.

Schedule
--------
Each day since the first reward day carries a rate, held in basis points so
that sums are exact:

    day <  10: 500 bps (5%)
    day <  20: 300 bps (3%)
    day <  30: 200 bps (2%)
    otherwise:   0

When a buy opens a new day bucket, the bucket's budget is the rate summed over
every day since the last bucket that was opened (or since day 0 if none was),
times the plugin's reserved tokens. The budget is fixed from then on.

Distribution
------------
A claim pays the user's share of the day's buy volume:

    user_fraction = user_buy / pool_buy
    new_fraction  = min(1, fraction_distributed + user_fraction)
    new_total     = floor(new_fraction * token_rewards + 0.5)
    payout        = new_total - amount_distributed

`fraction_distributed` never decreases and never exceeds 1, so
`amount_distributed` never exceeds `token_rewards`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import math
from typing import Optional

from ..state.plugins import NO_REWARD_DAY, TradeToEarn
from ..state.rewards import PoolRewardDay, UserRewardDay
from .checked import checked_add, checked_div, checked_sub, require_finite
from .errors import ArithmeticRejection, TemporalRejection, ValidationRejection

SECONDS_PER_DAY = 24 * 60 * 60
RATE_DENOM_BPS = 10_000

# (first day the rate no longer applies, rate in bps)
_RATE_STEPS = ((10, 500), (20, 300), (30, 200))


def reward_rate_bps(day: int) -> int:
    if day < 0:
        raise ValueError(f"day must be non-negative: {day}")
    for end, rate in _RATE_STEPS:
        if day < end:
            return rate
    return 0


def reward_schedule(day: int) -> float:
    """Per-day rate as a fraction of the reserved tokens."""
    return reward_rate_bps(day) / RATE_DENOM_BPS


def schedule_start(last_reward_day: int) -> int:
    return 0 if last_reward_day == NO_REWARD_DAY else last_reward_day + 1


def schedule_fraction_bps(first_day: int, last_day: int) -> int:
    """Sum of daily rates over `[first_day, last_day]` inclusive, in bps."""
    return sum(reward_rate_bps(d) for d in range(first_day, last_day + 1))


def day_budget(total_tokens: int, last_reward_day: int, day: int) -> int:
    """Token budget for a bucket opened on `day`."""
    bps = schedule_fraction_bps(schedule_start(last_reward_day), day)
    return total_tokens * bps // RATE_DENOM_BPS


def calendar_day(unix_timestamp: int) -> int:
    if unix_timestamp < 0:
        raise ValidationRejection("negative_timestamp")
    return unix_timestamp // SECONDS_PER_DAY


def day_index(plugin: TradeToEarn, unix_timestamp: int) -> int:
    """Days elapsed since the plugin's first reward day."""
    days = calendar_day(unix_timestamp) - plugin.first_reward_day
    if days < 0:
        raise TemporalRejection("before_first_reward_day")
    return days


@dataclass(frozen=True)
class BuyAccrual:
    plugin: TradeToEarn
    pool_day: PoolRewardDay
    user_day: UserRewardDay
    pool_day_created: bool
    user_day_created: bool


def record_buy(
    plugin: TradeToEarn,
    pool_day: Optional[PoolRewardDay],
    user_day: Optional[UserRewardDay],
    *,
    pool_id: str,
    user: str,
    day: int,
    base_amount: int,
) -> BuyAccrual:
    """
    Add a buy of `base_amount` to the day bucket, opening records as needed.

    A new pool-day record gets its budget from the schedule here; an existing one
    keeps the budget it was created with.
    """
    pool_day_created = pool_day is None
    if pool_day is None:
        pool_day = PoolRewardDay(
            pool_id=pool_id,
            day=day,
            token_rewards=day_budget(plugin.total_tokens, plugin.last_reward_day, day),
        )
    elif pool_day.day != day:
        raise ValidationRejection("pool_day_mismatch")

    user_day_created = user_day is None
    if user_day is None:
        user_day = UserRewardDay(pool_id=pool_id, user=user, day=day)
    elif user_day.day != day or user_day.user != user:
        raise ValidationRejection("user_day_mismatch")

    return BuyAccrual(
        plugin=replace(plugin, last_reward_day=day),
        pool_day=replace(pool_day, buy_amount=checked_add(pool_day.buy_amount, base_amount, what="pool_day_buy")),
        user_day=replace(user_day, buy_amount=checked_add(user_day.buy_amount, base_amount, what="user_day_buy")),
        pool_day_created=pool_day_created,
        user_day_created=user_day_created,
    )


def validate_claim_day(day: int, current_day: int) -> None:
    if day == current_day:
        raise TemporalRejection("same_day_claim")
    if day > current_day:
        raise TemporalRejection("future_day_claim")


@dataclass(frozen=True)
class Distribution:
    payout: int
    pool_day: PoolRewardDay
    user_day: UserRewardDay

    @property
    def pool_day_exhausted(self) -> bool:
        return self.pool_day.exhausted


def distribute(pool_day: PoolRewardDay, user_day: UserRewardDay) -> Distribution:
    """
    Pay `user_day`'s share of `pool_day`'s budget and zero the user's volume.

    A user with zero volume (for instance after an earlier claim) gets 0 and
    leaves the pool record unchanged.

    Raises:
        TemporalRejection: If the bucket has no budget
        ArithmeticRejection: On a zero pool volume or a decreasing total
    """
    if pool_day.token_rewards == 0:
        raise TemporalRejection("zero_budget")
    if user_day.buy_amount == 0:
        return Distribution(payout=0, pool_day=pool_day, user_day=user_day)
    if pool_day.buy_amount < user_day.buy_amount:
        raise ArithmeticRejection("user_volume_exceeds_pool_volume")

    user_fraction = checked_div(float(user_day.buy_amount), float(pool_day.buy_amount), what="user_fraction")
    new_fraction = min(1.0, require_finite(pool_day.fraction_distributed + user_fraction, what="fraction"))
    new_total = math.floor(new_fraction * pool_day.token_rewards + 0.5)
    payout = checked_sub(new_total, pool_day.amount_distributed, what="payout")

    return Distribution(
        payout=payout,
        pool_day=replace(pool_day, amount_distributed=new_total, fraction_distributed=new_fraction),
        user_day=replace(user_day, buy_amount=0),
    )
