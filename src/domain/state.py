from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Protocol


@dataclass(frozen=True)
class KeyValue:
    key: str
    value: bytes


class StateCursor(Protocol):
    """Iterator over a key range; ``close`` releases the backend handle."""

    def __iter__(self) -> Iterator[KeyValue]: ...

    def __next__(self) -> KeyValue: ...

    def close(self) -> None: ...


class StateStore(Protocol):
    """Ordered key-value backend the ledger reads and writes.

    ``get`` returns ``None`` for a missing key. ``scan`` covers the half-open
    range ``[start_key, end_key)`` in key order, where an empty bound leaves
    that side open. Backend failures surface as ``domain.errors.StoreError``.
    """

    def get(self, key: str) -> bytes | None: ...

    def put(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...

    def scan(self, start_key: str, end_key: str) -> StateCursor: ...
