# [TESTER] v1

from __future__ import annotations

import math

from cook_amm.core.cpmm import Side
from cook_amm.core.trade_to_earn import SECONDS_PER_DAY
from cook_amm.integration.authority import Authority
from cook_amm.integration.program import CookAmmProgram
from cook_amm.state.balances import NATIVE_ASSET
from cook_amm.state.identity import pool_reward_day_identity, reward_vault_identity, user_reward_day_identity


BASE = 1_000_000_000_000
QUOTE = 1_000_000_000
REWARDS = 1_000_000
# Day 0 opens with 5% of the reserved tokens.
DAY0_BUDGET = 50_000


def _setup():
    program = CookAmmProgram()
    for user in ("creator", "alice", "bob"):
        program.ledger.mint(user, NATIVE_ASSET, 10**9)
    program.ledger.mint("creator", "COOK", BASE + REWARDS)
    program.ledger.mint("creator", "wsol", QUOTE)
    program.ledger.mint("alice", "wsol", 10**9)
    program.ledger.mint("bob", "wsol", 10**9)
    pool_id = program.init_pool(
        Authority("creator"),
        base_asset="COOK",
        quote_asset="wsol",
        base_amount=BASE,
        quote_amount=QUOTE,
        fee_bps=25,
        now=0,
    ).pool_id
    return program, pool_id


def _with_rewards():
    program, pool_id = _setup()
    out = program.add_rewards(Authority("creator"), pool_id=pool_id, amount=REWARDS, now=0)
    assert out.accepted and out.attached
    return program, pool_id


def test_add_rewards_attaches_once() -> None:
    program, pool_id = _with_rewards()
    plugin = program.pool(pool_id).trade_to_earn
    assert plugin.total_tokens == REWARDS
    assert plugin.first_reward_day == 0
    assert program.ledger.balance(reward_vault_identity(pool_id), "COOK") == REWARDS

    again = program.add_rewards(Authority("creator"), pool_id=pool_id, amount=REWARDS, now=0)
    assert again.accepted and not again.attached
    assert program.ledger.balance(reward_vault_identity(pool_id), "COOK") == REWARDS


def test_buys_accrue_and_sells_do_not() -> None:
    program, pool_id = _with_rewards()
    buy = program.swap(Authority("alice"), pool_id=pool_id, side=Side.BUY, input_amount=300_000, now=10)
    assert buy.effect.reward_day == 0
    assert program.pool_reward_day(pool_id, 0).token_rewards == DAY0_BUDGET
    assert program.user_reward_day(pool_id, "alice", 0).buy_amount == buy.output_amount

    program.ledger.mint("bob", "COOK", 10**9)
    sell = program.swap(Authority("bob"), pool_id=pool_id, side=Side.SELL, input_amount=10_000_000, now=20)
    assert sell.effect.reward_day is None
    assert program.user_reward_day(pool_id, "bob", 0) is None
    assert program.pool_reward_day(pool_id, 0).buy_amount == buy.output_amount


def test_claims_split_budget_and_close_records() -> None:
    program, pool_id = _with_rewards()
    a = program.swap(Authority("alice"), pool_id=pool_id, side=Side.BUY, input_amount=300_000, now=10).output_amount
    b = program.swap(Authority("bob"), pool_id=pool_id, side=Side.BUY, input_amount=700_000, now=20).output_amount

    same_day = program.claim_reward(Authority("alice"), pool_id=pool_id, day=0, now=100)
    assert same_day.rejection == "temporal:same_day_claim"

    user_day_id = user_reward_day_identity(pool_id, "alice", 0)
    rent = program.store.lamports(user_day_id)
    native_before = program.ledger.balance("alice", NATIVE_ASSET)

    alice = program.claim_reward(Authority("alice"), pool_id=pool_id, day=0, now=SECONDS_PER_DAY)
    assert alice.accepted
    assert alice.payout_amount == math.floor(a / (a + b) * DAY0_BUDGET + 0.5)
    assert program.ledger.balance("alice", "COOK") == a + alice.payout_amount
    assert not program.store.exists(user_day_id)
    assert program.ledger.balance("alice", NATIVE_ASSET) == native_before + rent
    assert program.pool_reward_day(pool_id, 0) is not None

    pool_day_id = pool_reward_day_identity(pool_id, 0)
    bob = program.claim_reward(Authority("bob"), pool_id=pool_id, day=0, now=SECONDS_PER_DAY + 5)
    assert alice.payout_amount + bob.payout_amount == DAY0_BUDGET
    assert not program.store.exists(pool_day_id)
    assert program.ledger.balance(reward_vault_identity(pool_id), "COOK") == REWARDS - DAY0_BUDGET

    # Claiming again pays nothing, even with both records closed.
    again = program.claim_reward(Authority("alice"), pool_id=pool_id, day=0, now=2 * SECONDS_PER_DAY)
    assert again.accepted
    assert again.payout_amount == 0


def test_later_bucket_budget_covers_skipped_days() -> None:
    program, pool_id = _with_rewards()
    program.swap(Authority("alice"), pool_id=pool_id, side=Side.BUY, input_amount=300_000, now=10)
    program.swap(Authority("alice"), pool_id=pool_id, side=Side.BUY, input_amount=300_000, now=3 * SECONDS_PER_DAY)
    # Days 1..3 at 5% each.
    assert program.pool_reward_day(pool_id, 3).token_rewards == 150_000
    assert program.pool(pool_id).trade_to_earn.last_reward_day == 3

    # Day 2 never had a bucket; without a record it reads as a closed bucket.
    skipped = program.claim_reward(Authority("alice"), pool_id=pool_id, day=2, now=4 * SECONDS_PER_DAY)
    assert skipped.rejection is None
    assert skipped.payout_amount == 0


def test_claim_without_rewards_or_volume() -> None:
    program, pool_id = _setup()
    out = program.claim_reward(Authority("alice"), pool_id=pool_id, day=0, now=SECONDS_PER_DAY)
    assert out.rejection == "validation:no_trade_to_earn"

    program.add_rewards(Authority("creator"), pool_id=pool_id, amount=REWARDS, now=0)
    out = program.claim_reward(Authority("alice"), pool_id=pool_id, day=0, now=SECONDS_PER_DAY)
    assert out.rejection == "temporal:no_reward_day"


def test_out_of_range_claim_arguments_are_rejected() -> None:
    program, pool_id = _with_rewards()
    out = program.claim_reward(Authority("alice"), pool_id=pool_id, day=-1, now=SECONDS_PER_DAY)
    assert out.rejection == "validation:day_out_of_range"
    out = program.claim_reward(Authority("alice"), pool_id=pool_id, day=0, now=-1)
    assert out.rejection == "validation:now_out_of_range"
