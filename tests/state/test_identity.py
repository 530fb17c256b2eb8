# [TESTER] v1

from __future__ import annotations

import pytest

from cook_amm.state.identity import (
    derive_identity,
    pool_identity,
    pool_reward_day_identity,
    price_series_identity,
    user_reward_day_identity,
)


def test_identities_are_deterministic_hex() -> None:
    a = derive_identity("pool", ["x", "y"])
    assert a == derive_identity("pool", ["x", "y"])
    assert a.startswith("0x") and len(a) == 66


def test_namespace_and_seed_split_matter() -> None:
    assert derive_identity("pool", ["ab", "c"]) != derive_identity("pool", ["a", "bc"])
    assert derive_identity("pool", ["x"]) != derive_identity("trader", ["x"])


def test_pool_identity_ignores_pair_order() -> None:
    assert pool_identity("COOK", "wsol") == pool_identity("wsol", "COOK")
    assert pool_identity("COOK", "wsol", "Other") != pool_identity("COOK", "wsol")
    with pytest.raises(ValueError):
        pool_identity("COOK", "COOK")


def test_day_identities_differ_per_day_and_user() -> None:
    pid = pool_identity("COOK", "wsol")
    assert pool_reward_day_identity(pid, 1) != pool_reward_day_identity(pid, 2)
    assert user_reward_day_identity(pid, "alice", 1) != user_reward_day_identity(pid, "bob", 1)
    assert price_series_identity(pid) == price_series_identity(pid, 0)


def test_bad_seed_parts_are_rejected() -> None:
    with pytest.raises(ValueError):
        derive_identity("pool", [2**32])
    with pytest.raises(TypeError):
        derive_identity("pool", [True])
    with pytest.raises(TypeError):
        derive_identity("pool", [1.5])  # type: ignore[list-item]
