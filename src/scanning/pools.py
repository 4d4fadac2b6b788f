# src/scanning/pools.py — v1
"""Reusable scratch buffers for line scanning and HTML tokenization.

The tokenizer pool lives beside its tokenizer in scanning.tokenizer.
Each pooled object is checked out to exactly one caller for the duration of
one entry scan and returned on every exit path. Logical content is reset on
checkout; allocated capacity is kept.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar, overload

T = TypeVar("T")

DEFAULT_LINE_CAPACITY = 512
DEFAULT_MAX_IDLE = 64


class LineBuffer:
    """Growable line store whose slots survive ``reset()``."""

    __slots__ = ("_slots", "_length")

    def __init__(self, capacity: int = DEFAULT_LINE_CAPACITY) -> None:
        self._slots: list[str] = [""] * capacity
        self._length = 0

    def append(self, line: str) -> None:
        if self._length < len(self._slots):
            self._slots[self._length] = line
        else:
            self._slots.append(line)
        self._length += 1

    def reset(self) -> None:
        self._length = 0

    def lines(self) -> list[str]:
        """Copy of the logical content."""
        return self._slots[: self._length]

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return self._length

    @overload
    def __getitem__(self, index: int) -> str: ...

    @overload
    def __getitem__(self, index: slice) -> list[str]: ...

    def __getitem__(self, index: int | slice) -> str | list[str]:
        if isinstance(index, slice):
            start, stop, step = index.indices(self._length)
            return self._slots[start:stop:step]
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError("LineBuffer index out of range")
        return self._slots[index]

    def __iter__(self) -> Iterator[str]:
        for i in range(self._length):
            yield self._slots[i]


class ScratchPool(Generic[T]):
    """Free list of reusable objects with scope-based checkout."""

    def __init__(
        self,
        factory: Callable[[], T],
        reset: Callable[[T], None],
        max_idle: int = DEFAULT_MAX_IDLE,
    ) -> None:
        self._factory = factory
        self._reset = reset
        self._max_idle = max_idle
        self._free: list[T] = []
        self._lock = threading.Lock()
        self._created = 0

    @contextmanager
    def acquire(self) -> Iterator[T]:
        """Check an item out for the duration of the ``with`` block."""
        item = self._checkout()
        try:
            yield item
        finally:
            self._release(item)

    @property
    def idle_count(self) -> int:
        return len(self._free)

    @property
    def created_count(self) -> int:
        return self._created

    def _checkout(self) -> T:
        with self._lock:
            if self._free:
                item = self._free.pop()
            else:
                item = self._factory()
                self._created += 1
        self._reset(item)
        return item

    def _release(self, item: T) -> None:
        with self._lock:
            if len(self._free) < self._max_idle:
                self._free.append(item)


scanner_pool: ScratchPool[LineBuffer] = ScratchPool(LineBuffer, LineBuffer.reset)