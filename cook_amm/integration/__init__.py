"""
Record-level integration layer
"""

from .authority import Authority, sign_request, verify_request_signature
from .program import (
    AddLiquidityOutcome,
    AddRewardsOutcome,
    ClaimOutcome,
    CookAmmProgram,
    InitPoolOutcome,
    RemoveLiquidityOutcome,
    SwapOutcome,
)
from .token_ledger import TokenLedger

__all__ = [
    "Authority",
    "sign_request",
    "verify_request_signature",
    "AddLiquidityOutcome",
    "AddRewardsOutcome",
    "ClaimOutcome",
    "CookAmmProgram",
    "InitPoolOutcome",
    "RemoveLiquidityOutcome",
    "SwapOutcome",
    "TokenLedger",
]
