"""Lockout of card tokens after repeated wrong PINs."""

import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable

from cachetools import TTLCache
from cardvault.errors.card import PinAttemptsThrottled


@dataclass
class _Failures:
    count: int = 0
    blocked_until: float = 0.0


class PinThrottle:
    """Failure counters per card token.

    An entry lives `lockout_seconds` after its latest failure, so counters of
    tokens nobody retries (including unknown ones) disappear on their own.
    At most `max_entries` tokens are tracked, the least recently failed ones
    are dropped first.
    """

    def __init__(
        self,
        max_failures: int = 5,
        lockout_seconds: int = 900,
        max_entries: int = 100_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_failures = max_failures
        self.lockout_seconds = lockout_seconds
        self.clock = clock
        self._failures: TTLCache[str, _Failures] = TTLCache(
            maxsize=max_entries, ttl=lockout_seconds, timer=clock
        )
        self._lock = Lock()

    def check(self, card_token: str) -> None:
        with self._lock:
            entry = self._failures.get(card_token)
            if entry is None:
                return
            remaining = entry.blocked_until - self.clock()
            if remaining > 0:
                raise PinAttemptsThrottled(f"retry in {int(remaining) + 1} second(s)")

    def record_failure(self, card_token: str) -> None:
        with self._lock:
            entry = self._failures.get(card_token) or _Failures()
            entry.count += 1
            if entry.count >= self.max_failures:
                entry.blocked_until = self.clock() + self.lockout_seconds
                entry.count = 0
            # storing again restarts the entry's lifetime
            self._failures[card_token] = entry

    def reset(self, card_token: str) -> None:
        with self._lock:
            self._failures.pop(card_token, None)

    def clear(self) -> None:
        with self._lock:
            self._failures.clear()

    def tracked(self) -> int:
        """Number of tokens with live failure counters."""
        with self._lock:
            self._failures.expire()
            return len(self._failures)


_throttles: dict[tuple[int, int, int], PinThrottle] = {}
_throttles_lock = Lock()


def get_pin_throttle(
    max_failures: int, lockout_seconds: int, max_entries: int = 100_000
) -> PinThrottle:
    """Process-wide throttle shared by all requests with the same policy."""
    with _throttles_lock:
        key = (max_failures, lockout_seconds, max_entries)
        if key not in _throttles:
            _throttles[key] = PinThrottle(max_failures, lockout_seconds, max_entries)
        return _throttles[key]
