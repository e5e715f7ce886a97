from __future__ import annotations

import bisect
from abc import ABC, abstractmethod
from types import TracebackType
from typing import Iterator, Mapping

from domain.errors import StoreError
from domain.state import KeyValue, StateStore


class BaseStateCursor(ABC):
    def __init__(self) -> None:
        self._closed = False

    def __iter__(self) -> Iterator[KeyValue]:
        return self

    def __next__(self) -> KeyValue:
        if self._closed:
            raise StopIteration
        return self._advance()

    def __enter__(self) -> BaseStateCursor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._release()

    @abstractmethod
    def _advance(self) -> KeyValue:
        """Return the next entry or raise ``StopIteration``."""

    def _release(self) -> None:
        pass


class InMemoryStateCursor(BaseStateCursor):
    def __init__(self, entries: list[KeyValue]) -> None:
        super().__init__()
        self._entries = iter(entries)

    def _advance(self) -> KeyValue:
        return next(self._entries)

    def _release(self) -> None:
        self._entries = iter(())


class InMemoryStateStore(StateStore):
    """Ordered key-value store held in a dict plus a sorted key list.

    Range scans iterate over a snapshot taken when the scan is opened, so
    writes made while a cursor is open are not visible through it.
    """

    def __init__(self, initial: Mapping[str, bytes] | None = None) -> None:
        self._values: dict[str, bytes] = {}
        self._keys: list[str] = []
        for key, value in (initial or {}).items():
            self.put(key, value)

    def get(self, key: str) -> bytes | None:
        return self._values.get(key)

    def put(self, key: str, value: bytes) -> None:
        if not key:
            raise StoreError("key must be non-empty", key=key)
        if not isinstance(value, bytes):
            raise StoreError("value must be bytes", key=key)
        if key not in self._values:
            bisect.insort(self._keys, key)
        self._values[key] = value

    def delete(self, key: str) -> None:
        if key not in self._values:
            return
        del self._values[key]
        del self._keys[bisect.bisect_left(self._keys, key)]

    def scan(self, start_key: str, end_key: str) -> InMemoryStateCursor:
        lower = bisect.bisect_left(self._keys, start_key) if start_key else 0
        upper = bisect.bisect_left(self._keys, end_key) if end_key else len(self._keys)
        entries = [KeyValue(key=key, value=self._values[key]) for key in self._keys[lower:upper]]
        return InMemoryStateCursor(entries)

    def __len__(self) -> int:
        return len(self._values)


__all__ = ["BaseStateCursor", "InMemoryStateCursor", "InMemoryStateStore"]
