"""Per-address cooldown store for faucet disbursements.

Entries map a canonical address string to the earliest epoch time a new
transfer to that address may be attempted. Entries are only compared
against "now", so stale ones are never cleaned up. The store lives in
memory and is lost on restart.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import timedelta

logger = logging.getLogger(__name__)


def format_wait(remaining: timedelta) -> str:
    """Format a remaining cooldown for user display."""
    seconds = max(1, int(remaining.total_seconds()))
    if seconds < 60:
        return f"Please wait {seconds} seconds before next request"
    minutes = seconds // 60
    remaining_seconds = seconds % 60
    if remaining_seconds > 0:
        return f"Please wait {minutes}m {remaining_seconds}s before next request"
    return f"Please wait {minutes} minutes before next request"


class RateLimitStore:
    """In-memory cooldown store keyed by destination address.

    Parameters
    ----------
    clock : Callable[[], float]
        Source of the current epoch time in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: dict[str, float] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Tasks holding or waiting on each lock
        self._lock_users: dict[str, int] = {}

    def is_blocked(self, key: str) -> bool:
        """Check whether a key is still cooling down.

        Parameters
        ----------
        key : str
            Canonical address string.

        Returns
        -------
        bool
            True if an entry exists and lies strictly after now.
        """
        until = self._entries.get(key)
        return until is not None and until > self._clock()

    def record_success(self, key: str, cooldown: timedelta) -> float:
        """Block a key until now + cooldown, replacing any earlier entry.

        Returns
        -------
        float
            The new earliest eligible time.
        """
        until = self._clock() + cooldown.total_seconds()
        self._entries[key] = until
        logger.debug("Cooldown recorded", extra={"address": key, "until": until})
        return until

    def blocked_until(self, key: str) -> float | None:
        """Earliest eligible time for a key, if one was ever recorded."""
        return self._entries.get(key)

    def remaining(self, key: str) -> timedelta | None:
        """Time left before a key becomes eligible, or None if it already is."""
        if not self.is_blocked(key):
            return None
        return timedelta(seconds=self._entries[key] - self._clock())

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Serialize check-then-record sequences for one key.

        Other keys are not blocked. A key's lock is dropped once no task
        holds or waits on it, so locks do not accumulate per address.
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]
