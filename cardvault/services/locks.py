"""Per-card serialization of lifecycle mutations.

Unrelated cards never share a lock, so they make progress concurrently.
Database updates are additionally guarded by compare-and-swap conditions,
which keeps the guarantees across several worker processes.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class CardLockTimeout(TimeoutError):
    pass


class CardLocks:
    def __init__(self) -> None:
        # locks disappear once no request holds or waits for them
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._guard = threading.Lock()

    def _lock_for(self, card_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(card_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[card_id] = lock
            return lock

    @contextmanager
    def hold(self, card_id: str, timeout: float = 10) -> Iterator[None]:
        lock = self._lock_for(card_id)
        if not lock.acquire(timeout=timeout):
            logger.error("CardLocks: timed out waiting for card=%s", card_id)
            raise CardLockTimeout(f"card {card_id} is busy")
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


card_locks = CardLocks()
