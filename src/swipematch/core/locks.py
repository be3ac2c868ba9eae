"""Pair-scoped mutual exclusion for match ledger updates."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator

from ..errors import PersistenceError


class LockTimeoutError(PersistenceError):
    code = "LOCK_CONTENTION"


class PairLockRegistry:
    """Hand out one lock per key, created on demand and dropped when idle.

    The registry mutex is held only while looking up or releasing an entry, so
    callers working on different keys never wait on each other.
    """

    def __init__(self, *, timeout: float | None = 5.0) -> None:
        self._timeout = timeout
        self._mutex = threading.Lock()
        self._locks: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._checkout(key)
        acquired = lock.acquire(timeout=-1 if self._timeout is None else self._timeout)
        try:
            if not acquired:
                raise LockTimeoutError(f"Timed out waiting for lock on {key!r}")
            yield
        finally:
            if acquired:
                lock.release()
            self._checkin(key)

    def active_keys(self) -> list[Hashable]:
        with self._mutex:
            return list(self._locks)

    def _checkout(self, key: Hashable) -> threading.Lock:
        with self._mutex:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: Hashable) -> None:
        with self._mutex:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]
