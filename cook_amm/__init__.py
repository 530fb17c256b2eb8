"""
cook_amm: AMM pricing and trade-to-earn engine for the Let's Cook launchpad.

Layers:
- `cook_amm.kernels`: small integer-only pricing kernels.
- `cook_amm.core`: pure, deterministic steps (swap, claim, liquidity, schedules).
- `cook_amm.state`: record types, binary codec, identity derivation and record storage.
- `cook_amm.integration`: imperative shell wiring records, balances and authority.
"""

__version__ = "0.3.0"
