"""
Trade-to-earn reward records.

`PoolRewardDay` aggregates one pool's buy volume for one day bucket and tracks
how much of that bucket's budget has been paid out. `UserRewardDay` holds one
user's buy volume for the same bucket and is closed once the user claims.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import math


@dataclass(frozen=True)
class PoolRewardDay:
    pool_id: str
    day: int
    token_rewards: int
    buy_amount: int = 0
    amount_distributed: int = 0
    fraction_distributed: float = 0.0

    def __post_init__(self) -> None:
        if self.token_rewards < 0 or self.buy_amount < 0 or self.amount_distributed < 0:
            raise ValueError("reward amounts must be non-negative")
        if self.amount_distributed > self.token_rewards:
            raise ValueError(
                f"amount_distributed exceeds token_rewards: {self.amount_distributed} > {self.token_rewards}"
            )
        if not math.isfinite(self.fraction_distributed) or not (0.0 <= self.fraction_distributed <= 1.0):
            raise ValueError(f"fraction_distributed must be in [0, 1]: {self.fraction_distributed}")

    @property
    def exhausted(self) -> bool:
        return self.amount_distributed >= self.token_rewards


@dataclass(frozen=True)
class UserRewardDay:
    pool_id: str
    user: str
    day: int
    buy_amount: int = 0
    # Carried in the record layout; sells never earn rewards.
    sell_amount: int = 0

    def __post_init__(self) -> None:
        if self.buy_amount < 0 or self.sell_amount < 0:
            raise ValueError("volumes must be non-negative")


POINTS_PER_SWAP = 2


@dataclass(frozen=True)
class TraderRecord:
    """Per-user activity counter; every swap adds `POINTS_PER_SWAP`."""

    user: str
    total_points: int = 0

    def with_swap(self) -> "TraderRecord":
        return replace(self, total_points=self.total_points + POINTS_PER_SWAP)
