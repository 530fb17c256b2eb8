# [TESTER] v1

from __future__ import annotations

import pytest

from cook_amm.config import DEFAULT_RENT
from cook_amm.state.balances import NATIVE_ASSET, BalanceTable
from cook_amm.state.storage import (
    InMemoryRecordStore,
    InsufficientFunds,
    RecordExists,
    RecordNotFound,
    StorageError,
    get_or_create,
)


def _store(funds: int = 10**9):
    ledger = BalanceTable()
    ledger.set("payer", NATIVE_ASSET, funds)
    return ledger, InMemoryRecordStore(ledger)


def test_rent_minimum_balance() -> None:
    assert DEFAULT_RENT.minimum_balance(0) == 128 * 3_480 * 2
    assert DEFAULT_RENT.minimum_balance(33) == 161 * 3_480 * 2


def test_create_charges_rent_to_funding_source() -> None:
    ledger, store = _store()
    store.create("rec", 40, "payer")
    rent = DEFAULT_RENT.minimum_balance(40)
    assert store.lamports("rec") == rent
    assert ledger.get("payer", NATIVE_ASSET) == 10**9 - rent
    assert store.read("rec") == bytes(40)
    with pytest.raises(RecordExists):
        store.create("rec", 40, "payer")


def test_grow_charges_only_the_difference() -> None:
    ledger, store = _store()
    store.create("rec", 33, "payer")
    before = ledger.get("payer", NATIVE_ASSET)
    store.grow("rec", 61, "payer")
    assert before - ledger.get("payer", NATIVE_ASSET) == 28 * 3_480 * 2
    assert len(store.read("rec")) == 61
    with pytest.raises(StorageError):
        store.grow("rec", 10, "payer")


def test_write_requires_exact_size() -> None:
    _, store = _store()
    store.create("rec", 4, "payer")
    store.write("rec", b"abcd")
    assert store.read("rec") == b"abcd"
    with pytest.raises(StorageError):
        store.write("rec", b"abc")
    with pytest.raises(RecordNotFound):
        store.write("missing", b"")


def test_close_refunds_everything_to_beneficiary() -> None:
    ledger, store = _store()
    store.create("rec", 10, "payer")
    refunded = store.close("rec", "alice")
    assert refunded == DEFAULT_RENT.minimum_balance(10)
    assert ledger.get("alice", NATIVE_ASSET) == refunded
    assert store.lamports("rec") == 0
    assert not store.exists("rec")
    with pytest.raises(RecordNotFound):
        store.close("rec", "alice")


def test_underfunded_create_leaves_no_record() -> None:
    ledger, store = _store(funds=10)
    with pytest.raises(InsufficientFunds):
        store.create("rec", 10, "payer")
    assert not store.exists("rec")
    assert ledger.get("payer", NATIVE_ASSET) == 10


def test_get_or_create_is_idempotent() -> None:
    ledger, store = _store()
    data, created = get_or_create(store, "rec", 8, "payer")
    assert created and data == bytes(8)
    balance = ledger.get("payer", NATIVE_ASSET)
    data, created = get_or_create(store, "rec", 8, "payer")
    assert not created
    assert ledger.get("payer", NATIVE_ASSET) == balance


def test_snapshot_restore() -> None:
    _, store = _store()
    store.create("a", 1, "payer")
    snap = store.snapshot()
    store.create("b", 1, "payer")
    store.restore(snap)
    assert store.exists("a") and not store.exists("b")
