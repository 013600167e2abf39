"""Per-key mutual exclusion for batch writes."""

from __future__ import annotations

import threading
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(slots=True)
class KeyedLocks:
    """One lock per key, alive while someone holds or waits for it.

    Holders of different keys never wait for each other. A key is forgotten
    when its last holder leaves.
    """

    _locks: dict[str, threading.Lock] = field(default_factory=dict[str, threading.Lock])
    _holders: Counter[str] = field(default_factory=Counter[str])
    _guard: threading.Lock = field(default_factory=threading.Lock)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._holders[key] += 1
        try:
            with lock:
                yield
        finally:
            self._release(key)

    def _release(self, key: str) -> None:
        with self._guard:
            self._holders[key] -= 1
            if self._holders[key] <= 0:
                del self._holders[key]
                del self._locks[key]
