"""
Deterministic record identities.

A record's identity is a pure function of a namespace and its seed parts, so any
party holding the seeds can recompute where a record lives. Identities are never
random.

    identity = sha256(domain_sep(namespace) || len(seed_0) || seed_0 || ... )

Seeds are length-prefixed (uvarint) so different splits of the same bytes never
collide.
"""

from __future__ import annotations

import struct
from typing import Sequence, Tuple, Union

from .canonical import domain_sep_bytes, encode_bytes, encode_uvarint, sha256_hex

SeedPart = Union[bytes, str, int]

NS_POOL = "pool"
NS_PRICE_SERIES = "price_series"
NS_POOL_REWARD_DAY = "pool_reward_day"
NS_USER_REWARD_DAY = "user_reward_day"
NS_REWARD_VAULT = "reward_vault"
NS_LP_MINT = "lp_mint"
NS_TRADER = "trader"

POOL_PROVIDER_COOK = "CookAMM"


def _seed_bytes(part: SeedPart) -> bytes:
    if isinstance(part, bool):
        raise TypeError("bool is not a valid seed part")
    if isinstance(part, int):
        # Integer seeds are u32 little-endian (day indices, record counters).
        if not (0 <= part <= 0xFFFF_FFFF):
            raise ValueError(f"integer seed must fit in u32: {part}")
        return struct.pack("<I", part)
    if isinstance(part, str):
        return part.encode("utf-8")
    if isinstance(part, (bytes, bytearray)):
        return bytes(part)
    raise TypeError(f"unsupported seed part type: {type(part).__name__}")


def derive_identity(namespace: str, seed_parts: Sequence[SeedPart]) -> str:
    """Return the stable identity for `(namespace, seed_parts)` as 0x-prefixed hex."""
    buf = bytearray(domain_sep_bytes(namespace))
    buf += encode_uvarint(len(seed_parts))
    for part in seed_parts:
        buf += encode_bytes(_seed_bytes(part))
    return sha256_hex(bytes(buf))


def sorted_pair(asset_a: str, asset_b: str) -> Tuple[str, str]:
    """Order a pair so both (a, b) and (b, a) map to the same pool."""
    if asset_a == asset_b:
        raise ValueError(f"pool assets must differ: {asset_a}")
    return (asset_a, asset_b) if asset_a < asset_b else (asset_b, asset_a)


def pool_identity(base_asset: str, quote_asset: str, provider: str = POOL_PROVIDER_COOK) -> str:
    first, second = sorted_pair(base_asset, quote_asset)
    return derive_identity(NS_POOL, [first, second, provider])


def price_series_identity(pool_id: str, index: int = 0) -> str:
    return derive_identity(NS_PRICE_SERIES, [pool_id, index, "TimeSeries"])


def pool_reward_day_identity(pool_id: str, day: int) -> str:
    return derive_identity(NS_POOL_REWARD_DAY, [pool_id, day, "LaunchDate"])


def user_reward_day_identity(pool_id: str, user: str, day: int) -> str:
    return derive_identity(NS_USER_REWARD_DAY, [pool_id, user, day])


def reward_vault_identity(pool_id: str) -> str:
    return derive_identity(NS_REWARD_VAULT, [pool_id, "TradeToEarn"])


def lp_mint_identity(pool_id: str) -> str:
    return derive_identity(NS_LP_MINT, [pool_id, "LP"])


def trader_identity(user: str) -> str:
    return derive_identity(NS_TRADER, [user])
