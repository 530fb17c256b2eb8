"""
Engine configuration.

The target network used to be a build-time switch; here it is an explicit value
carried by `EngineConfig` and threaded through every component that needs
network-dependent constants (rent).
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum, unique
from pathlib import Path
from typing import Any, Mapping, Union

import yaml


LAMPORTS_PER_SOL = 1_000_000_000

# Bytes the ledger charges for on top of the record payload.
ACCOUNT_STORAGE_OVERHEAD = 128


@unique
class Network(Enum):
    DEVNET = "devnet"
    MAINNET = "mainnet"
    ECLIPSE = "eclipse"


@dataclass(frozen=True)
class RentParams:
    """Rent-exemption parameters (integer form of the ledger's rent sysvar)."""

    lamports_per_byte_year: int
    exemption_threshold_years: int = 2

    def __post_init__(self) -> None:
        if self.lamports_per_byte_year < 0:
            raise ValueError(f"lamports_per_byte_year must be non-negative: {self.lamports_per_byte_year}")
        if self.exemption_threshold_years <= 0:
            raise ValueError(f"exemption_threshold_years must be positive: {self.exemption_threshold_years}")

    def minimum_balance(self, size: int) -> int:
        """Lamports a record of `size` payload bytes must hold to be rent exempt."""
        if size < 0:
            raise ValueError(f"size must be non-negative: {size}")
        return (ACCOUNT_STORAGE_OVERHEAD + size) * self.lamports_per_byte_year * self.exemption_threshold_years


DEFAULT_RENT = RentParams(lamports_per_byte_year=3_480)
ECLIPSE_RENT = RentParams(lamports_per_byte_year=1_000_000_000 // 10_000 * 365 // (1024 * 1024))


def rent_for_network(network: Network) -> RentParams:
    if network is Network.ECLIPSE:
        return ECLIPSE_RENT
    return DEFAULT_RENT


@dataclass(frozen=True)
class EngineConfig:
    """Runtime config for the swap/claim engine and its record shell."""

    network: Network = Network.DEVNET

    # Launchpad fee: taken from the input on buys, from the quote output on sells.
    platform_fee_bps: int = 5
    fee_collector: str = "cook_fees"

    # Swap guards.
    dust_floor: int = 100

    # Liquidity scaling chunking.
    max_chunks: int = 50
    buy_min_chunk: int = 100
    sell_min_chunk: int = 100_000

    # Candles held by one price-series record before the pool opens the next one.
    max_candles_per_series: int = 1_440

    # Trade-to-earn window (days since first reward day that accrue volume).
    reward_days: int = 30

    # If True the curve prices the amount the pool actually receives after the
    # input asset's transfer fee, not the nominal amount.
    transfer_fee_aware: bool = True

    # Authority policy: if True every request must carry a BLS signature by the signer.
    require_signatures: bool = False
    chain_id: str = "cook-devnet"

    def __post_init__(self) -> None:
        if not isinstance(self.network, Network):
            raise TypeError(f"network must be a Network, got {self.network!r}")
        if not (0 <= self.platform_fee_bps <= 10_000):
            raise ValueError(f"platform_fee_bps must be in [0, 10000]: {self.platform_fee_bps}")
        if self.dust_floor < 0:
            raise ValueError(f"dust_floor must be non-negative: {self.dust_floor}")
        if self.max_chunks <= 0:
            raise ValueError(f"max_chunks must be positive: {self.max_chunks}")
        if self.buy_min_chunk <= 0 or self.sell_min_chunk <= 0:
            raise ValueError("min chunk sizes must be positive")
        if self.max_candles_per_series <= 0:
            raise ValueError(f"max_candles_per_series must be positive: {self.max_candles_per_series}")
        if self.reward_days < 0:
            raise ValueError(f"reward_days must be non-negative: {self.reward_days}")
        if not self.fee_collector:
            raise ValueError("fee_collector must be non-empty")

    @property
    def rent(self) -> RentParams:
        return rent_for_network(self.network)


def config_from_mapping(obj: Mapping[str, Any], *, base: EngineConfig = EngineConfig()) -> EngineConfig:
    """Build an `EngineConfig` from a plain mapping, rejecting unknown keys."""
    if not isinstance(obj, Mapping):
        raise TypeError("config must be a mapping")
    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")

    updates = dict(obj)
    if "network" in updates and not isinstance(updates["network"], Network):
        raw = updates["network"]
        if not isinstance(raw, str):
            raise TypeError("network must be a string")
        try:
            updates["network"] = Network(raw.strip().lower())
        except ValueError as exc:
            raise ValueError(f"unsupported network: {raw!r}") from exc
    return replace(base, **updates)


def load_config(path: Union[str, Path]) -> EngineConfig:
    """Load an `EngineConfig` from a YAML file (top-level mapping, or empty for defaults)."""
    text = Path(path).read_text(encoding="utf-8")
    obj = yaml.safe_load(text)
    if obj is None:
        return EngineConfig()
    return config_from_mapping(obj)
