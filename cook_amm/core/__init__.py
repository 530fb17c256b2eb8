"""
Core AMM algorithms for the Cook launchpad engine
"""

from .cpmm import MIN_RESERVE_DUST, Side, get_swap_amount, swap
from .engine import (
    ClaimRequest,
    ClaimResult,
    ClaimState,
    SwapRequest,
    SwapResult,
    SwapState,
    claim_or_raise,
    claim_step,
    swap_or_raise,
    swap_step,
)
from .errors import ArithmeticRejection, EngineError, TemporalRejection, ValidationRejection
from .liquidity_scaling import simulate
from .price_series import update_price_series
from .quote import SwapQuote, quote_swap
from .transfer_fee import NoTransferFees, TransferFee, TransferFeeConfig, TransferFeeLookup, TransferFeeTable

__all__ = [
    "MIN_RESERVE_DUST",
    "Side",
    "get_swap_amount",
    "swap",
    "ClaimRequest",
    "ClaimResult",
    "ClaimState",
    "SwapRequest",
    "SwapResult",
    "SwapState",
    "claim_or_raise",
    "claim_step",
    "swap_or_raise",
    "swap_step",
    "ArithmeticRejection",
    "EngineError",
    "TemporalRejection",
    "ValidationRejection",
    "simulate",
    "update_price_series",
    "SwapQuote",
    "quote_swap",
    "NoTransferFees",
    "TransferFee",
    "TransferFeeConfig",
    "TransferFeeLookup",
    "TransferFeeTable",
]
