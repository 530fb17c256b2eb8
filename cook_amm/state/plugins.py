"""
Pool plugins as a closed tagged union.

Each variant carries a fixed `TAG` discriminant. Tags 0 and 1 are assigned; the
rest of the u8 tag space is reserved so new variants can be added without
changing how existing records decode. A pool holds at most one plugin per tag,
kept in an ordered tuple and looked up by tag.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum, unique
from typing import Optional, Tuple, Union

from ..config import LAMPORTS_PER_SOL


@unique
class PluginTag(IntEnum):
    TRADE_TO_EARN = 0
    LIQUIDITY_SCALING = 1


# Highest tag value the record layout can carry (u8).
MAX_PLUGIN_TAG = 0xFF

# `last_reward_day` value meaning no reward-day record has been opened since attach.
NO_REWARD_DAY = 100

DEFAULT_SCALING_SCALAR = 15
DEFAULT_SCALING_THRESHOLD = 10 * LAMPORTS_PER_SOL


@dataclass(frozen=True)
class LiquidityScaling:
    """Anti-impact chunking, active until the quote reserve reaches `threshold`."""

    TAG = PluginTag.LIQUIDITY_SCALING

    scalar: int = DEFAULT_SCALING_SCALAR
    threshold: int = DEFAULT_SCALING_THRESHOLD
    active: bool = True

    def __post_init__(self) -> None:
        if self.scalar < 0:
            raise ValueError(f"scalar must be non-negative: {self.scalar}")
        if self.threshold <= 0:
            raise ValueError(f"threshold must be positive: {self.threshold}")

    def deactivated(self) -> "LiquidityScaling":
        return replace(self, active=False)


@dataclass(frozen=True)
class TradeToEarn:
    """Day-bucketed buy-volume rewards funded from a reserved token balance."""

    TAG = PluginTag.TRADE_TO_EARN

    total_tokens: int
    first_reward_day: int
    last_reward_day: int = NO_REWARD_DAY

    def __post_init__(self) -> None:
        if self.total_tokens < 0:
            raise ValueError(f"total_tokens must be non-negative: {self.total_tokens}")
        if self.first_reward_day < 0:
            raise ValueError(f"first_reward_day must be non-negative: {self.first_reward_day}")
        if not (0 <= self.last_reward_day <= 0xFFFF_FFFF):
            raise ValueError(f"last_reward_day must fit in u32: {self.last_reward_day}")


Plugin = Union[LiquidityScaling, TradeToEarn]


@dataclass(frozen=True)
class PluginSet:
    """Ordered collection of plugins, at most one per tag."""

    plugins: Tuple[Plugin, ...] = ()

    def __post_init__(self) -> None:
        seen = set()
        for plugin in self.plugins:
            if not isinstance(plugin, (LiquidityScaling, TradeToEarn)):
                raise TypeError(f"unsupported plugin type: {type(plugin).__name__}")
            if plugin.TAG in seen:
                raise ValueError(f"duplicate plugin tag: {plugin.TAG.name}")
            seen.add(plugin.TAG)

    def get(self, tag: PluginTag) -> Optional[Plugin]:
        for plugin in self.plugins:
            if plugin.TAG == tag:
                return plugin
        return None

    @property
    def liquidity_scaling(self) -> Optional[LiquidityScaling]:
        return self.get(PluginTag.LIQUIDITY_SCALING)  # type: ignore[return-value]

    @property
    def trade_to_earn(self) -> Optional[TradeToEarn]:
        return self.get(PluginTag.TRADE_TO_EARN)  # type: ignore[return-value]

    def with_plugin(self, plugin: Plugin) -> "PluginSet":
        """Return a copy with `plugin` replacing the variant of the same tag, or appended."""
        out = []
        replaced = False
        for existing in self.plugins:
            if existing.TAG == plugin.TAG:
                out.append(plugin)
                replaced = True
            else:
                out.append(existing)
        if not replaced:
            out.append(plugin)
        return PluginSet(tuple(out))

    def __iter__(self):
        return iter(self.plugins)

    def __len__(self) -> int:
        return len(self.plugins)
