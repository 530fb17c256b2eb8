"""
Token-level transfer fees.

Some assets withhold a fee on every transfer, independent of the pool fee. The
engine only ever asks one question: how much of `amount` would be deducted if
`asset` were transferred now.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Protocol

from ..kernels.python.cpmm_quote_v1 import BPS_DENOM


class TransferFeeLookup(Protocol):
    def fee_for(self, amount: int, asset: str) -> int:
        """Return the amount withheld when transferring `amount` of `asset`."""
        ...


@dataclass(frozen=True)
class TransferFee:
    """Fee parameters effective from `epoch`."""

    epoch: int = 0
    basis_points: int = 0
    maximum_fee: int = 0

    def __post_init__(self) -> None:
        if not (0 <= self.basis_points <= BPS_DENOM):
            raise ValueError(f"basis_points must be in [0, {BPS_DENOM}]: {self.basis_points}")
        if self.maximum_fee < 0 or self.epoch < 0:
            raise ValueError("epoch and maximum_fee must be non-negative")

    def calculate(self, amount: int) -> int:
        """`min(ceil(amount * bps / 10_000), maximum_fee)`."""
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        if self.basis_points == 0 or amount == 0:
            return 0
        raw = -(-(amount * self.basis_points) // BPS_DENOM)
        return min(raw, self.maximum_fee)


@dataclass(frozen=True)
class TransferFeeConfig:
    """An asset's current fee and the scheduled replacement that takes over at its epoch."""

    older: TransferFee = TransferFee()
    newer: Optional[TransferFee] = None

    def fee_at(self, epoch: int) -> TransferFee:
        if self.newer is not None and epoch >= self.newer.epoch:
            return self.newer
        return self.older


class NoTransferFees:
    """Lookup for ledgers where no asset withholds anything."""

    def fee_for(self, amount: int, asset: str) -> int:
        return 0


@dataclass
class TransferFeeTable:
    """Per-asset transfer fee configs evaluated at the current epoch."""

    configs: Dict[str, TransferFeeConfig] = field(default_factory=dict)
    epoch: int = 0

    @classmethod
    def from_mapping(cls, configs: Mapping[str, TransferFeeConfig], *, epoch: int = 0) -> "TransferFeeTable":
        return cls(configs=dict(configs), epoch=epoch)

    def set_fee(self, asset: str, config: TransferFeeConfig) -> None:
        self.configs[asset] = config

    def fee_for(self, amount: int, asset: str) -> int:
        config = self.configs.get(asset)
        if config is None:
            return 0
        return config.fee_at(self.epoch).calculate(amount)
