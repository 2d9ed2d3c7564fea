"""In-memory cache of upstream payloads.

CacheStore maps a CacheKey (data type, language) to a CacheEntry. Each
entry is an immutable object holding the payload together with its fetch
timestamp, and writes swap whole entries under a lock. A reader therefore
sees either the previous entry or the new one, never the payload of one
fetch paired with the timestamp of another.

Staleness is computed on read against the TTL; entries are never evicted
individually, only all at once through clear().

The lock is a threading.Lock and no critical section awaits, so the store
is safe for any mix of asyncio tasks and threads.

Example:
    >>> store = CacheStore(ttl=timedelta(minutes=10))
    >>> key = CacheKey(DataType.CURRENT_WEATHER, Language.TC)
    >>> store.put(key, {"updateTime": "2024-01-01T12:02:00+08:00"})
    >>> entry = store.get(key)
    >>> store.is_fresh(entry)
    True
"""

import logging
import threading
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from typing import Any, Callable, Optional

from .models import CacheEntry, CacheEntryStatus
from .types import DEFAULT_CACHE_TTL, CacheKey

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=dt_timezone.utc)


class CacheStore:
    """Thread-safe TTL cache keyed by (data type, language).

    Args:
        ttl: How long an entry counts as fresh. Defaults to 10 minutes.
        clock: Returns the current timezone-aware time. Defaults to UTC now.

    Example:
        Deterministic time in tests::

            now = datetime(2024, 1, 1, tzinfo=timezone.utc)
            store = CacheStore(ttl=timedelta(minutes=10), clock=lambda: now)
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_CACHE_TTL,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        """Return the entry for ``key``, fresh or not, or None."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: CacheKey, payload: dict[str, Any]) -> CacheEntry:
        """Store ``payload`` under ``key`` with the current timestamp.

        Replaces any previous entry for the key as a whole.

        Returns:
            The new entry.
        """
        entry = CacheEntry(payload=payload, fetched_at=self._clock())
        with self._lock:
            self._entries[key] = entry
        logger.debug(f"Cached {key} at {entry.fetched_at.isoformat()}")
        return entry

    def is_fresh(self, entry: CacheEntry, ttl: Optional[timedelta] = None) -> bool:
        """Whether ``entry`` is younger than ``ttl``.

        Args:
            entry: Entry to check.
            ttl: Time-to-live. Defaults to the store's TTL.

        Returns:
            True if ``now - entry.fetched_at < ttl``.
        """
        if ttl is None:
            ttl = self._ttl
        return entry.age(self._clock()) < ttl

    def get_fresh(self, key: CacheKey) -> Optional[CacheEntry]:
        """Return the entry for ``key`` only if it is fresh."""
        entry = self.get(key)
        if entry is not None and self.is_fresh(entry):
            return entry
        return None

    def clear(self) -> int:
        """Remove every entry.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed

    def snapshot(self) -> dict[str, CacheEntryStatus]:
        """Point-in-time diagnostic view of the cache.

        The mapping is copied under the lock, then described outside it.

        Returns:
            Status per key, keyed by the key's string form (``"rhrread_tc"``).
        """
        with self._lock:
            entries = list(self._entries.items())

        now = self._clock()
        return {
            str(key): CacheEntryStatus(
                timestamp=entry.fetched_at,
                age=entry.age(now).total_seconds(),
                expired=entry.age(now) >= self._ttl,
            )
            for key, entry in entries
        }
