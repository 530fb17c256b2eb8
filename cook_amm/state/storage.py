"""
Identity-addressed record storage with rent accounting.

A record is a byte blob at a derived identity. Creating or growing a record
moves the rent-exempt minimum for its new size from a funding holder into the
record's own lamport balance; closing it returns every lamport to a beneficiary.
Lamports live in the shared `BalanceTable` under `NATIVE_ASSET`.
"""

from __future__ import annotations

from typing import Dict, Protocol, Tuple

from loguru import logger

from ..config import DEFAULT_RENT, RentParams
from .balances import NATIVE_ASSET, BalanceTable


class StorageError(ValueError):
    """Base class for record storage failures."""


class RecordNotFound(StorageError):
    pass


class RecordExists(StorageError):
    pass


class InsufficientFunds(StorageError):
    pass


class RecordStore(Protocol):
    def exists(self, identity: str) -> bool: ...

    def create(self, identity: str, size: int, funding_source: str) -> None: ...

    def read(self, identity: str) -> bytes: ...

    def write(self, identity: str, data: bytes) -> None: ...

    def grow(self, identity: str, new_size: int, funding_source: str) -> None: ...

    def close(self, identity: str, beneficiary: str) -> int: ...

    def lamports(self, identity: str) -> int: ...


class InMemoryRecordStore:
    """Dict-backed `RecordStore` that charges rent against a `BalanceTable`."""

    def __init__(self, ledger: BalanceTable, rent: RentParams = DEFAULT_RENT):
        self.ledger = ledger
        self.rent = rent
        self._records: Dict[str, bytes] = {}

    def exists(self, identity: str) -> bool:
        return identity in self._records

    def _fund(self, identity: str, funding_source: str, amount: int) -> None:
        if amount <= 0:
            return
        available = self.ledger.get(funding_source, NATIVE_ASSET)
        if available < amount:
            raise InsufficientFunds(
                f"{funding_source} cannot fund {amount} lamports for {identity[:18]} (has {available})"
            )
        self.ledger.move(NATIVE_ASSET, funding_source, identity, amount)

    def create(self, identity: str, size: int, funding_source: str) -> None:
        if identity in self._records:
            raise RecordExists(f"record already exists: {identity}")
        if size < 0:
            raise StorageError(f"size must be non-negative: {size}")
        needed = self.rent.minimum_balance(size) - self.lamports(identity)
        self._fund(identity, funding_source, needed)
        self._records[identity] = bytes(size)
        logger.debug("record created {} size={} funded_by={}", identity[:18], size, funding_source)

    def read(self, identity: str) -> bytes:
        try:
            return self._records[identity]
        except KeyError:
            raise RecordNotFound(f"record not found: {identity}") from None

    def write(self, identity: str, data: bytes) -> None:
        current = self.read(identity)
        if len(data) != len(current):
            raise StorageError(
                f"write size mismatch for {identity[:18]}: record is {len(current)} bytes, got {len(data)}"
            )
        self._records[identity] = bytes(data)

    def grow(self, identity: str, new_size: int, funding_source: str) -> None:
        current = self.read(identity)
        if new_size < len(current):
            raise StorageError(f"records never shrink: {len(current)} -> {new_size}")
        if new_size == len(current):
            return
        needed = self.rent.minimum_balance(new_size) - self.lamports(identity)
        self._fund(identity, funding_source, needed)
        self._records[identity] = current + bytes(new_size - len(current))
        logger.debug("record grown {} {} -> {} bytes", identity[:18], len(current), new_size)

    def close(self, identity: str, beneficiary: str) -> int:
        """Delete the record and return its lamports to `beneficiary`."""
        self.read(identity)
        refunded = self.lamports(identity)
        if refunded:
            self.ledger.move(NATIVE_ASSET, identity, beneficiary, refunded)
        del self._records[identity]
        logger.debug("record closed {} refunded={} to={}", identity[:18], refunded, beneficiary)
        return refunded

    def lamports(self, identity: str) -> int:
        return self.ledger.get(identity, NATIVE_ASSET)

    def snapshot(self) -> Dict[str, bytes]:
        return dict(self._records)

    def restore(self, snapshot: Dict[str, bytes]) -> None:
        self._records = dict(snapshot)

    def __len__(self) -> int:
        return len(self._records)


def get_or_create(store: RecordStore, identity: str, size: int, funding_source: str) -> Tuple[bytes, bool]:
    """
    Return `(data, created)` for `identity`, creating a zeroed record of `size`
    bytes funded by `funding_source` when it does not exist yet.
    """
    if store.exists(identity):
        return store.read(identity), False
    store.create(identity, size, funding_source)
    return store.read(identity), True
