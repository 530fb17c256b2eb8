"""
Chunked swap simulation for shallow pools.

While a pool's quote reserve is below the plugin threshold, a trade is split
into equal chunks. Each chunk is priced on the provisional reserves left by the
previous one, with its input scaled by

    factor = clamp(quote_reserve * scalar / 10 / threshold, 0.0002, 1.0)

Buys multiply the chunk input by the factor and sells divide by it. Nothing
here mutates pool state; the caller commits the aggregate output.
"""

from __future__ import annotations

from typing import List, Optional

from ..config import EngineConfig
from ..kernels.python.cpmm_quote_v1 import BPS_DENOM
from ..state.plugins import LiquidityScaling
from .checked import SaturationAnomaly, checked_div, require_finite, saturating_add, saturating_sub
from .cpmm import Side, get_swap_amount, parse_side

SCALING_FLOOR = 0.0002
SCALING_CEIL = 1.0

_DEFAULT_CONFIG = EngineConfig()


def chunk_count(input_amount: int, side: Side, *, config: EngineConfig = _DEFAULT_CONFIG) -> int:
    """`min(input // min_chunk + 1, max_chunks)`; min_chunk depends on the side."""
    min_chunk = config.buy_min_chunk if side is Side.BUY else config.sell_min_chunk
    return min(input_amount // min_chunk + 1, config.max_chunks)


def scaling_factor(quote_reserve: int, plugin: LiquidityScaling) -> float:
    if quote_reserve >= plugin.threshold:
        return 1.0
    raw = checked_div(quote_reserve * plugin.scalar / 10.0, float(plugin.threshold), what="scaling_factor")
    return min(max(raw, SCALING_FLOOR), SCALING_CEIL)


def is_scaling(plugin: Optional[LiquidityScaling], quote_reserve: int) -> bool:
    """True when a trade against `quote_reserve` goes through the chunked path."""
    return plugin is not None and plugin.active and quote_reserve < plugin.threshold


def simulate(
    input_amount: int,
    side,
    base_reserve: int,
    quote_reserve: int,
    fee_bps: int,
    plugin: Optional[LiquidityScaling],
    *,
    config: EngineConfig = _DEFAULT_CONFIG,
    anomalies: Optional[List[SaturationAnomaly]] = None,
) -> int:
    """
    Aggregate output of the chunked trade.

    Falls through to the plain calculator when the plugin is absent or inactive,
    or when the quote reserve is already at or above the threshold.

    Raises:
        ArithmeticRejection: On division by zero or a non-finite intermediate
    """
    side = parse_side(side)
    if not is_scaling(plugin, quote_reserve):
        return get_swap_amount(input_amount, side, base_reserve, quote_reserve, fee_bps)
    if input_amount == 0:
        return 0

    chunks = chunk_count(input_amount, side, config=config)
    chunk_size = input_amount / chunks
    chunk_credit = int(chunk_size)
    chunk_net = chunk_size - chunk_size * fee_bps / BPS_DENOM

    base = base_reserve
    quote = quote_reserve
    total = 0
    for i in range(chunks):
        factor = scaling_factor(quote, plugin)
        if side is Side.BUY:
            effective = chunk_net * factor
            out_f = checked_div(effective * base, quote + effective, what="chunk_buy")
            out = int(out_f)
            quote = saturating_add(quote, chunk_credit, context=f"scaling_chunk_{i}_quote", anomalies=anomalies)
            base = saturating_sub(base, out, context=f"scaling_chunk_{i}_base", anomalies=anomalies)
        else:
            effective = require_finite(chunk_net / factor, what="chunk_sell_input")
            out_f = checked_div(effective * quote, effective + base, what="chunk_sell")
            out = int(out_f)
            quote = saturating_sub(quote, out, context=f"scaling_chunk_{i}_quote", anomalies=anomalies)
            base = saturating_add(base, chunk_credit, context=f"scaling_chunk_{i}_base", anomalies=anomalies)
        total += out
    return total
