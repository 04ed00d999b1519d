from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List

from ..core.constants import DEFAULT_LOCK_TIMEOUT_S
from ..core.exceptions import StoreUnavailable


class KeyedLocks:
    """One lock per key (resource+date, user+month) for check-then-write sections.

    A key's lock is dropped once no thread holds or waits on it.
    """

    def __init__(self, *, timeout: float = DEFAULT_LOCK_TIMEOUT_S):
        self._timeout = float(timeout)
        self._guard = threading.Lock()
        # key -> [lock, holders and waiters]
        self._locks: Dict[Hashable, List] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: Hashable) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=self._timeout):
                raise StoreUnavailable(f"Timed out waiting for lock {key!r}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)
