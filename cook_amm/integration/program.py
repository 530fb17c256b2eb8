"""
Record-level entry points for the Cook AMM.

`CookAmmProgram` is the shell around the pure engine. Each entry point:

1. checks the caller's authority,
2. reads every record it needs up front,
3. runs the pure step on in-memory copies,
4. moves tokens and writes records back.

Steps 3 and 4 are all-or-nothing: the record store and the balance table are
snapshotted before anything moves and restored when the entry point rejects or
raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from loguru import logger

from ..config import EngineConfig
from ..core.cpmm import Side, parse_side
from ..core.engine import (
    ClaimRequest,
    ClaimState,
    SwapEffect,
    SwapRequest,
    SwapState,
    claim_step,
    swap_step,
)
from ..core.checked import require_u32, require_u64
from ..core.errors import ArithmeticRejection, EngineError, ValidationRejection, rejection_from_code
from ..core.liquidity import (
    add_liquidity,
    attach_trade_to_earn,
    create_pool,
    optimal_deposit,
    remove_liquidity,
)
from ..core.price_series import seed_series
from ..core.quote import SwapQuote, quote_swap
from ..core.trade_to_earn import calendar_day, day_index
from ..state.balances import NATIVE_ASSET
from ..state.codec import (
    RecordDecodeError,
    RecordEncodeError,
    decode_pool,
    decode_pool_reward_day,
    decode_price_series,
    decode_trader,
    decode_user_reward_day,
    encode_pool,
    encode_pool_reward_day,
    encode_price_series,
    encode_trader,
    encode_user_reward_day,
)
from ..state.identity import (
    lp_mint_identity,
    pool_identity,
    pool_reward_day_identity,
    price_series_identity,
    reward_vault_identity,
    trader_identity,
    user_reward_day_identity,
)
from ..state.plugins import LiquidityScaling
from ..state.pools import PoolState
from ..state.rewards import PoolRewardDay, TraderRecord, UserRewardDay
from ..state.storage import InMemoryRecordStore, InsufficientFunds, RecordNotFound
from ..state.time_series import PriceTimeSeries, minute_of
from .authority import Authority, require_authority
from .token_ledger import TokenLedger

T = TypeVar("T")


@dataclass(frozen=True)
class InitPoolOutcome:
    accepted: bool
    pool_id: Optional[str] = None
    lp_amount: int = 0
    rejection: Optional[str] = None


@dataclass(frozen=True)
class AddRewardsOutcome:
    accepted: bool
    attached: bool = False
    total_tokens: int = 0
    rejection: Optional[str] = None


@dataclass(frozen=True)
class SwapOutcome:
    accepted: bool
    output_amount: int = 0
    rejection: Optional[str] = None
    effect: Optional[SwapEffect] = None


@dataclass(frozen=True)
class ClaimOutcome:
    accepted: bool
    payout_amount: int = 0
    rejection: Optional[str] = None


@dataclass(frozen=True)
class AddLiquidityOutcome:
    accepted: bool
    base_amount: int = 0
    quote_amount: int = 0
    lp_amount: int = 0
    rejection: Optional[str] = None


@dataclass(frozen=True)
class RemoveLiquidityOutcome:
    accepted: bool
    base_amount: int = 0
    quote_amount: int = 0
    rejection: Optional[str] = None


class CookAmmProgram:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        ledger: Optional[TokenLedger] = None,
        store: Optional[InMemoryRecordStore] = None,
    ):
        self.config = config or EngineConfig()
        self.ledger = ledger or TokenLedger()
        self.store = store or InMemoryRecordStore(self.ledger.balances, self.config.rent)

    # -- plumbing ----------------------------------------------------------------

    def _atomic(self, op: str, fn: Callable[[], T]) -> T:
        store_snap = self.store.snapshot()
        balances_snap = self.ledger.balances.snapshot()
        try:
            return fn()
        except EngineError as exc:
            self.store.restore(store_snap)
            self.ledger.balances.restore(balances_snap)
            logger.info("{} rejected: {}", op, exc.code)
            raise
        except Exception:
            self.store.restore(store_snap)
            self.ledger.balances.restore(balances_snap)
            logger.exception("{} failed, records and balances restored", op)
            raise

    def _read(self, identity: str, decode: Callable[[bytes], T]) -> Optional[T]:
        if not self.store.exists(identity):
            return None
        try:
            return decode(self.store.read(identity))
        except RecordDecodeError as exc:
            raise ValidationRejection("wrong_record_type") from exc

    def _put(self, identity: str, encode: Callable[[T], bytes], record: T, payer: str) -> None:
        """Create, grow, or overwrite the record at `identity` with the encoded `record`."""
        try:
            data = encode(record)
        except RecordEncodeError as exc:
            raise ArithmeticRejection("record_encoding") from exc
        try:
            if not self.store.exists(identity):
                self.store.create(identity, len(data), payer)
            elif len(self.store.read(identity)) < len(data):
                self.store.grow(identity, len(data), payer)
            self.store.write(identity, data)
        except InsufficientFunds as exc:
            raise ValidationRejection("insufficient_rent_funds") from exc

    def _close(self, identity: str, beneficiary: str) -> None:
        try:
            self.store.close(identity, beneficiary)
        except RecordNotFound as exc:
            raise ValidationRejection("unknown_record") from exc

    def _transfer(self, asset: str, src: str, dst: str, amount: int) -> int:
        if amount == 0:
            return 0
        try:
            return self.ledger.transfer(asset, src, dst, amount)
        except ValueError as exc:
            raise ValidationRejection("insufficient_funds") from exc

    def _load_pool(self, pool_id: str) -> PoolState:
        pool = self._read(pool_id, decode_pool)
        if pool is None:
            raise ValidationRejection("unknown_pool")
        if pool.pool_id != pool_id:
            raise ValidationRejection("pool_identity_mismatch")
        return pool

    def _series_id(self, pool: PoolState) -> str:
        return price_series_identity(pool.pool_id, pool.price_series_count - 1)

    # -- reads -------------------------------------------------------------------

    def pool(self, pool_id: str) -> PoolState:
        return self._load_pool(pool_id)

    def price_series(self, pool_id: str) -> PriceTimeSeries:
        pool = self._load_pool(pool_id)
        series = self._read(self._series_id(pool), decode_price_series)
        if series is None:
            raise ValidationRejection("missing_price_series")
        return series

    def price_history(self, pool_id: str) -> PriceTimeSeries:
        """Every candle of the pool, across all of its series records."""
        pool = self._load_pool(pool_id)
        candles = []
        for index in range(pool.price_series_count):
            series = self._read(price_series_identity(pool_id, index), decode_price_series)
            if series is None:
                raise ValidationRejection("missing_price_series")
            candles.extend(series.candles)
        return PriceTimeSeries(tuple(candles))

    def pool_reward_day(self, pool_id: str, day: int) -> Optional[PoolRewardDay]:
        return self._read(pool_reward_day_identity(pool_id, day), decode_pool_reward_day)

    def user_reward_day(self, pool_id: str, user: str, day: int) -> Optional[UserRewardDay]:
        return self._read(user_reward_day_identity(pool_id, user, day), decode_user_reward_day)

    def trader(self, user: str) -> Optional[TraderRecord]:
        return self._read(trader_identity(user), decode_trader)

    def lp_balance(self, pool_id: str, user: str) -> int:
        return self.ledger.balance(user, lp_mint_identity(pool_id))

    def quote(self, pool_id: str, side, input_amount: int) -> SwapQuote:
        """Read-only quote with the current pool state (no platform fee)."""
        return quote_swap(
            self._load_pool(pool_id),
            side,
            input_amount,
            config=self.config,
            transfer_fees=self.ledger.transfer_fees,
        )

    # -- init_pool -----------------------------------------------------------------

    def init_pool(
        self,
        authority: Authority,
        *,
        base_asset: str,
        quote_asset: str,
        base_amount: int,
        quote_amount: int,
        fee_bps: int,
        now: int,
        base_decimals: int = 9,
        quote_decimals: int = 9,
        liquidity_scaling: Optional[LiquidityScaling] = None,
    ) -> InitPoolOutcome:
        fields = {
            "base_asset": base_asset,
            "quote_asset": quote_asset,
            "base_amount": base_amount,
            "quote_amount": quote_amount,
            "fee_bps": fee_bps,
            "now": now,
        }

        def run() -> InitPoolOutcome:
            require_authority(authority, "init_pool", fields, config=self.config)
            require_u64("now", now)
            user = authority.signer
            if base_asset == quote_asset:
                raise ValidationRejection("identical_assets")
            if NATIVE_ASSET in (base_asset, quote_asset):
                # Vault lamports would mix with the record's rent balance.
                raise ValidationRejection("native_asset_pool")
            pool_id = pool_identity(base_asset, quote_asset)
            if self.store.exists(pool_id):
                raise ValidationRejection("pool_exists")

            # Reserves are what the pool actually received.
            base_in = self._transfer(base_asset, user, pool_id, base_amount)
            quote_in = self._transfer(quote_asset, user, pool_id, quote_amount)

            pool = create_pool(
                base_asset=base_asset,
                quote_asset=quote_asset,
                base_amount=base_in,
                quote_amount=quote_in,
                fee_bps=fee_bps,
                base_decimals=base_decimals,
                quote_decimals=quote_decimals,
                created_at=now,
                liquidity_scaling=liquidity_scaling,
            )
            self.ledger.mint(user, lp_mint_identity(pool_id), pool.lp_supply)
            self._put(pool_id, encode_pool, pool, user)
            series = seed_series(minute_of(now), pool.last_price)
            self._put(self._series_id(pool), encode_price_series, series, user)
            logger.debug("pool created {} reserves=({}, {}) lp={}", pool_id[:18], base_in, quote_in, pool.lp_supply)
            return InitPoolOutcome(accepted=True, pool_id=pool_id, lp_amount=pool.lp_supply)

        try:
            return self._atomic("init_pool", run)
        except EngineError as exc:
            return InitPoolOutcome(accepted=False, rejection=exc.code)

    # -- add_rewards -----------------------------------------------------------------

    def add_rewards(self, authority: Authority, *, pool_id: str, amount: int, now: int) -> AddRewardsOutcome:
        fields = {"pool_id": pool_id, "amount": amount, "now": now}

        def run() -> AddRewardsOutcome:
            require_authority(authority, "add_rewards", fields, config=self.config)
            require_u64("now", now)
            pool = self._load_pool(pool_id)
            if pool.trade_to_earn is not None:
                return AddRewardsOutcome(
                    accepted=True, attached=False, total_tokens=pool.trade_to_earn.total_tokens
                )
            vault = reward_vault_identity(pool_id)
            self._transfer(pool.base_asset, authority.signer, vault, amount)
            # Fund the plugin with the vault's actual balance.
            total = self.ledger.balance(vault, pool.base_asset)
            pool, attached = attach_trade_to_earn(pool, total, calendar_day(now))
            self._put(pool_id, encode_pool, pool, authority.signer)
            logger.debug("trade-to-earn attached {} total_tokens={}", pool_id[:18], total)
            return AddRewardsOutcome(accepted=True, attached=attached, total_tokens=total)

        try:
            return self._atomic("add_rewards", run)
        except EngineError as exc:
            return AddRewardsOutcome(accepted=False, rejection=exc.code)

    # -- swap ------------------------------------------------------------------------

    def swap(self, authority: Authority, *, pool_id: str, side, input_amount: int, now: int) -> SwapOutcome:
        """Spend quote for base (side 0) or base for quote (side 1)."""
        try:
            side = parse_side(side)
        except EngineError as exc:
            return SwapOutcome(accepted=False, rejection=exc.code)
        fields = {"pool_id": pool_id, "side": int(side), "input_amount": input_amount, "now": now}

        def run() -> SwapOutcome:
            require_authority(authority, "swap", fields, config=self.config)
            require_u64("now", now)
            user = authority.signer
            pool = self._load_pool(pool_id)
            series_id = self._series_id(pool)
            series = self._read(series_id, decode_price_series)
            if series is None:
                raise ValidationRejection("missing_price_series")

            pool_day_id = user_day_id = None
            pool_day = user_day = None
            plugin = pool.trade_to_earn
            if side is Side.BUY and plugin is not None:
                day = day_index(plugin, now)
                if day < self.config.reward_days:
                    pool_day_id = pool_reward_day_identity(pool_id, day)
                    user_day_id = user_reward_day_identity(pool_id, user, day)
                    pool_day = self._read(pool_day_id, decode_pool_reward_day)
                    user_day = self._read(user_day_id, decode_user_reward_day)
            trader_id = trader_identity(user)
            trader = self._read(trader_id, decode_trader)

            state = SwapState(pool=pool, series=series, pool_day=pool_day, user_day=user_day, trader=trader)
            result = swap_step(
                state,
                SwapRequest(user=user, side=side, input_amount=input_amount, now=now),
                config=self.config,
                transfer_fees=self.ledger.transfer_fees,
            )
            if not result.accepted:
                raise rejection_from_code(result.rejection or "")
            new, effect = result.state, result.effect
            assert new is not None and effect is not None

            quote = effect.quote
            collector = self.config.fee_collector
            if side is Side.BUY:
                self._transfer(pool.quote_asset, user, collector, effect.platform_fee)
                received = self._transfer(pool.quote_asset, user, pool_id, quote.amount_in)
                self._transfer(pool.base_asset, pool_id, user, quote.amount_out)
            else:
                received = self._transfer(pool.base_asset, user, pool_id, quote.amount_in)
                self._transfer(pool.quote_asset, pool_id, user, quote.amount_out)
                self._transfer(pool.quote_asset, user, collector, effect.platform_fee)
            if received != quote.amount_received:
                raise ValidationRejection("transfer_fee_mismatch")

            self._put(pool_id, encode_pool, new.pool, user)
            # A rolled series goes to the pool's next series record.
            self._put(self._series_id(new.pool), encode_price_series, new.series, user)
            if pool_day_id is not None and new.pool_day is not None:
                self._put(pool_day_id, encode_pool_reward_day, new.pool_day, user)
            if user_day_id is not None and new.user_day is not None:
                self._put(user_day_id, encode_user_reward_day, new.user_day, user)
            self._put(trader_id, encode_trader, new.trader, user)

            if effect.scaling_deactivated:
                logger.info("liquidity scaling deactivated for {}", pool_id[:18])
            return SwapOutcome(accepted=True, output_amount=effect.output_amount, effect=effect)

        try:
            return self._atomic("swap", run)
        except EngineError as exc:
            return SwapOutcome(accepted=False, rejection=exc.code)

    # -- claim_reward ------------------------------------------------------------------

    def claim_reward(self, authority: Authority, *, pool_id: str, day: int, now: int) -> ClaimOutcome:
        fields = {"pool_id": pool_id, "day": day, "now": now}

        def run() -> ClaimOutcome:
            require_authority(authority, "claim_reward", fields, config=self.config)
            require_u32("day", day)
            require_u64("now", now)
            user = authority.signer
            pool = self._load_pool(pool_id)
            pool_day_id = pool_reward_day_identity(pool_id, day)
            user_day_id = user_reward_day_identity(pool_id, user, day)
            state = ClaimState(
                pool=pool,
                pool_day=self._read(pool_day_id, decode_pool_reward_day),
                user_day=self._read(user_day_id, decode_user_reward_day),
            )
            result = claim_step(state, ClaimRequest(user=user, day=day, now=now))
            if not result.accepted:
                raise rejection_from_code(result.rejection or "")
            new, effect = result.state, result.effect
            assert new is not None and effect is not None

            self._transfer(pool.base_asset, reward_vault_identity(pool_id), user, effect.payout)
            if effect.close_user_day:
                self._close(user_day_id, user)
            if new.pool_day is not None:
                if effect.close_pool_day:
                    self._close(pool_day_id, pool_id)
                elif new.pool_day != state.pool_day:
                    self._put(pool_day_id, encode_pool_reward_day, new.pool_day, user)
            logger.debug("reward claimed {} day={} user={} payout={}", pool_id[:18], day, user, effect.payout)
            return ClaimOutcome(accepted=True, payout_amount=effect.payout)

        try:
            return self._atomic("claim_reward", run)
        except EngineError as exc:
            return ClaimOutcome(accepted=False, rejection=exc.code)

    # -- add_liquidity -------------------------------------------------------------------

    def add_liquidity(
        self,
        authority: Authority,
        *,
        pool_id: str,
        base_amount: int,
        quote_amount: int,
        now: int,
        min_lp: int = 0,
    ) -> AddLiquidityOutcome:
        """Deposit at most `(base_amount, quote_amount)` at the pool ratio for LP tokens."""
        fields = {
            "pool_id": pool_id,
            "base_amount": base_amount,
            "quote_amount": quote_amount,
            "min_lp": min_lp,
            "now": now,
        }

        def run() -> AddLiquidityOutcome:
            require_authority(authority, "add_liquidity", fields, config=self.config)
            require_u64("base_amount", base_amount)
            require_u64("quote_amount", quote_amount)
            require_u64("min_lp", min_lp)
            user = authority.signer
            pool = self._load_pool(pool_id)
            base_used, quote_used = optimal_deposit(pool, base_amount, quote_amount)
            # LP is minted for what the pool actually received.
            base_in = self._transfer(pool.base_asset, user, pool_id, base_used)
            quote_in = self._transfer(pool.quote_asset, user, pool_id, quote_used)
            new_pool, lp_minted = add_liquidity(pool, base_in, quote_in, min_lp=min_lp)
            self.ledger.mint(user, lp_mint_identity(pool_id), lp_minted)
            self._put(pool_id, encode_pool, new_pool, user)
            logger.debug("liquidity added {} in=({}, {}) lp={}", pool_id[:18], base_in, quote_in, lp_minted)
            return AddLiquidityOutcome(
                accepted=True, base_amount=base_used, quote_amount=quote_used, lp_amount=lp_minted
            )

        try:
            return self._atomic("add_liquidity", run)
        except EngineError as exc:
            return AddLiquidityOutcome(accepted=False, rejection=exc.code)

    # -- remove_liquidity ----------------------------------------------------------------

    def remove_liquidity(self, authority: Authority, *, pool_id: str, lp_amount: int, now: int) -> RemoveLiquidityOutcome:
        fields = {"pool_id": pool_id, "lp_amount": lp_amount, "now": now}

        def run() -> RemoveLiquidityOutcome:
            require_authority(authority, "remove_liquidity", fields, config=self.config)
            user = authority.signer
            pool = self._load_pool(pool_id)
            new_pool, base_out, quote_out = remove_liquidity(pool, lp_amount, dust_floor=self.config.dust_floor)
            lp_asset = lp_mint_identity(pool_id)
            if self.ledger.balance(user, lp_asset) < lp_amount:
                raise ValidationRejection("insufficient_lp")
            self.ledger.burn(user, lp_asset, lp_amount)
            self._transfer(pool.base_asset, pool_id, user, base_out)
            self._transfer(pool.quote_asset, pool_id, user, quote_out)
            self._put(pool_id, encode_pool, new_pool, user)
            return RemoveLiquidityOutcome(accepted=True, base_amount=base_out, quote_amount=quote_out)

        try:
            return self._atomic("remove_liquidity", run)
        except EngineError as exc:
            return RemoveLiquidityOutcome(accepted=False, rejection=exc.code)


def outcome_error(outcome: Any) -> Optional[EngineError]:
    """Typed exception for a rejected outcome, or None if it was accepted."""
    if outcome.accepted:
        return None
    return rejection_from_code(outcome.rejection or "")
