from __future__ import annotations

from collections.abc import Hashable, Iterator
from contextlib import contextmanager
import threading


class KeyedLock:
    """One mutex per key, created on demand and dropped when nobody holds or waits for it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    def _checkout(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1
            return lock

    def _release_ref(self, key: Hashable) -> None:
        with self._guard:
            remaining = self._waiters.get(key, 1) - 1
            if remaining <= 0:
                self._waiters.pop(key, None)
                self._locks.pop(key, None)
            else:
                self._waiters[key] = remaining

    @contextmanager
    def acquire(self, key: Hashable, *, timeout: float) -> Iterator[bool]:
        """Yield True once the key is held, or False if ``timeout`` expired first."""
        lock = self._checkout(key)
        acquired = lock.acquire(timeout=max(0.0, timeout))
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()
            self._release_ref(key)

    def is_locked(self, key: Hashable) -> bool:
        with self._guard:
            lock = self._locks.get(key)
        return lock is not None and lock.locked()


generation_locks = KeyedLock()
